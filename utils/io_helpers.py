from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import yaml
from rich.logging import RichHandler


def read_config(config_path: Path) -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def ensure_directory(path: Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    handlers = [RichHandler(rich_tracebacks=True)]
    if log_file:
        ensure_directory(Path(log_file).parent)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=handlers,
    )


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with lower-case, stripped column names."""
    out = df.copy()
    out.columns = [str(c).lower().strip() for c in out.columns]
    return out


def write_table(df: pd.DataFrame, output_path: Path) -> Path:
    output_path = Path(output_path)
    ensure_directory(output_path.parent)
    df.to_csv(output_path, index=False)
    return output_path
