from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import dask.dataframe as dd
import pandas as pd
from rich.progress import track

logger = logging.getLogger(__name__)


class SurveyDataLoader:
    """Read track and acoustic CSV exports as string-typed tables.

    Every column is read as text; typing and malformed-row handling happen in
    the cleaning stages so a single bad cell never aborts the read.
    """

    def __init__(self, column_map: Optional[Dict[str, str]] = None):
        self.column_map = column_map or {}

    def get_file_list(self, root: Path, pattern: Optional[str] = None) -> List[Path]:
        root = Path(root)
        if root.is_file():
            return [root]
        if not root.exists():
            raise FileNotFoundError(f"Input path not found: {root}")
        files = sorted(root.glob(pattern or "*.csv"))
        if not files:
            logger.warning("No files found at %s with pattern %s", root, pattern)
        return files

    @staticmethod
    def _separator(path: Path) -> str:
        return "\t" if path.suffix.lower() in {".tsv", ".txt"} else ","

    def _normalize(self, df):
        df = df.rename(columns={c: str(c).lower().strip() for c in df.columns})
        if self.column_map:
            df = df.rename(columns=self.column_map)
        return df

    def load_csv_files(
        self,
        file_paths: List[Path],
        lazy: bool = False,
        blocksize: str | None = "64MB",
    ) -> dd.DataFrame | pd.DataFrame:
        if not file_paths:
            raise ValueError("No input files provided")
        sep = self._separator(file_paths[0])

        if lazy:
            logger.info("Loading %d CSV files with Dask", len(file_paths))
            ddf = dd.read_csv(
                [str(p) for p in file_paths],
                dtype=str,
                blocksize=blocksize,
                sep=sep,
                skipinitialspace=True,
            )
            return self._normalize(ddf)

        logger.info("Loading %d CSV files eagerly with Pandas", len(file_paths))
        parts = []
        for p in track(file_paths, description="Reading CSVs"):
            parts.append(self._normalize(pd.read_csv(p, dtype=str, sep=sep, skipinitialspace=True)))
        return pd.concat(parts, ignore_index=True)

    def load_frame(
        self,
        root: Path,
        pattern: Optional[str] = None,
        lazy: bool = False,
        blocksize: str | None = "64MB",
    ) -> pd.DataFrame:
        files = self.get_file_list(root, pattern)
        if not files:
            raise FileNotFoundError(f"No files found in {root} with pattern {pattern}")
        data = self.load_csv_files(files, lazy=lazy, blocksize=blocksize)
        if isinstance(data, dd.DataFrame):
            data = data.compute().reset_index(drop=True)
        logger.info("Loaded %d rows from %d file(s)", len(data), len(files))
        return data
