"""Shared fixtures for orgscope tests."""

from datetime import date

import pytest

from orgscope.analysis.models import EmployeeRecord

AS_OF = date(2024, 6, 30)


def employee(employee_id: str, manager_id: str | None = None, **fields) -> EmployeeRecord:
    """Build a record with sensible pay so compensation rules stay quiet unless a test wants them."""
    defaults = {"base_salary": 100_000.0, "bonus": 20_000.0, "flrr": 150_000.0}
    defaults.update(fields)
    return EmployeeRecord(employee_id=employee_id, manager_id=manager_id, **defaults)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def scenario_records() -> list[EmployeeRecord]:
    """A root with two reports plus one record pointing at a manager that does not exist."""
    return [
        employee("A"),
        employee("B", "A"),
        employee("C", "A"),
        employee("D", "Z"),
    ]


@pytest.fixture
def sample_org() -> list[EmployeeRecord]:
    """A small three-layer org across two functions and two cost tiers."""
    return [
        employee("CEO", function="Executive", country="United States", flrr=900_000,
                 base_salary=500_000, bonus=250_000, hire_date=date(2015, 1, 10)),
        employee("VPS", "CEO", function="Sales", country="United States", flrr=400_000,
                 base_salary=200_000, bonus=150_000, hire_date=date(2019, 3, 1)),
        employee("VPE", "CEO", function="Engineering", country="India", flrr=250_000,
                 base_salary=180_000, bonus=30_000, hire_date=date(2021, 9, 15)),
        employee("S1", "VPS", function="Sales", country="United States", flrr=180_000,
                 base_salary=100_000, bonus=60_000, hire_date=date(2023, 11, 1)),
        employee("S2", "VPS", function="Sales", country="United States", flrr=170_000,
                 base_salary=95_000, bonus=55_000, hire_date=date(2022, 2, 1)),
        employee("E1", "VPE", function="Engineering", country="India", flrr=60_000,
                 base_salary=45_000, bonus=5_000, hire_date=date(2020, 5, 4)),
    ]
