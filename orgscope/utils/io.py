"""File I/O utilities for reading rosters and writing analysis tables."""

from pathlib import Path

import pandas as pd
from rich.console import Console

type FilePath = str | Path

console = Console()


def read_roster_file(path: FilePath, sheet_name: str | int = 0) -> pd.DataFrame:
    """Read a roster export, keeping every cell as raw text or object.

    Identifier columns must not be parsed as numbers (``"00123"`` would lose
    its leading zeros), so coercion is left to the normalization step.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Roster file not found: {path}")

    match path.suffix.lower():
        case ".csv":
            return _read_csv(path)
        case ".xlsx" | ".xlsm":
            return pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype=object)
        case ext:
            raise ValueError(f"Unsupported roster format: {ext}")


def _read_csv(path: Path) -> pd.DataFrame:
    """Read a CSV export, handling encoding quirks."""
    for encoding in ("utf-8", "latin-1", "cp1252"):
        try:
            return pd.read_csv(path, encoding=encoding, dtype=str, skip_blank_lines=True)
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Could not decode {path}")


def write_output(df: pd.DataFrame, path: FilePath, fmt: str = "csv") -> None:
    """Write a DataFrame to the specified format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    match fmt:
        case "csv":
            df.to_csv(path, index=False)
        case "excel":
            df.to_excel(path, index=False, engine="openpyxl")
        case "json":
            df.to_json(path, orient="records", indent=2)
        case other:
            raise ValueError(f"Unsupported output format: {other}")

    console.print(f"  Wrote {len(df)} rows to {path}")
