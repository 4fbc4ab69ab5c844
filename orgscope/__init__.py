"""orgscope: organizational structure analytics for employee rosters."""

__version__ = "0.1.0"
