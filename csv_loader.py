# csv_loader.py
# Delimited-text loader producing a named-column table of float samples.
from __future__ import annotations

import io
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SEPARATORS = (",", ";", "\t", "|")
# utf-8-sig also reads plain utf-8 and drops a leading BOM
ENCODINGS = ("utf-8-sig", "cp1252", "latin1")

_LOAD_EXECUTOR: Optional[ThreadPoolExecutor] = None


class TableLoadError(ValueError):
    """Raised when a file yields no usable numeric table."""


@dataclass
class ColumnTable:
    columns: Dict[str, np.ndarray] = field(default_factory=dict)
    source_name: str = ""

    def __len__(self) -> int:
        return len(self.columns)

    def __contains__(self, name: object) -> bool:
        return name in self.columns

    def __getitem__(self, name: str) -> np.ndarray:
        return self.columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def items(self):
        return self.columns.items()

    @property
    def names(self) -> List[str]:
        return list(self.columns)

    @property
    def max_length(self) -> int:
        return max((len(v) for v in self.columns.values()), default=0)

    def to_frame(self, names: Optional[List[str]] = None) -> pd.DataFrame:
        """Columns side by side; shorter ones padded with NaN."""
        names = self.names if names is None else names
        return pd.DataFrame({n: pd.Series(self.columns[n]) for n in names}, columns=names)


# --- parsing helpers ---
def _decode(data: bytes) -> Tuple[str, str]:
    last_err: Optional[Exception] = None
    for enc in ENCODINGS:
        try:
            return data.decode(enc), enc
        except UnicodeDecodeError as e:
            last_err = e
    raise TableLoadError(f"Could not decode file. Last error: {last_err}")


def _read_rows(text: str, sep: str) -> Tuple[pd.DataFrame, int]:
    """Read every line, header included, as raw string cells.

    The header row fixes the width. Rows that are longer only because of
    trailing delimiters are trimmed; other over-long rows are skipped.
    """
    opts = dict(sep=sep, header=None, dtype=str, engine="python", skipinitialspace=True)
    width = pd.read_csv(io.StringIO(text), nrows=1, **opts).shape[1]
    skipped: List[List[str]] = []

    def _on_bad_line(fields: List[str]) -> Optional[List[str]]:
        if all(f is None or not str(f).strip() for f in fields[width:]):
            return fields[:width]
        skipped.append(fields)
        return None

    rows = pd.read_csv(io.StringIO(text), on_bad_lines=_on_bad_line, **opts)
    return rows, len(skipped)


def _read_frame(text: str) -> Tuple[pd.DataFrame, int]:
    """Try each separator and keep the parse with the widest header."""
    best: Optional[Tuple[pd.DataFrame, int]] = None
    last_err: Optional[Exception] = None
    for sep in SEPARATORS:
        try:
            rows, skipped = _read_rows(text, sep)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
            logger.debug("separator %r rejected: %s", sep, e)
            last_err = e
            continue
        if best is None or rows.shape[1] > best[0].shape[1]:
            best = (rows, skipped)
    if best is None:
        raise TableLoadError(f"No parseable header. Last error: {last_err}")
    return best


def _header_names(header: pd.Series) -> List[str]:
    names: List[str] = []
    for value in header:
        name = "" if pd.isna(value) else str(value).strip()
        base, k = name, 1
        while name and name in names:
            name = f"{base}.{k}"
            k += 1
        names.append(name)
    return names


def _numeric_columns(rows: pd.DataFrame) -> Dict[str, np.ndarray]:
    names = _header_names(rows.iloc[0])
    body = rows.iloc[1:]
    columns: Dict[str, np.ndarray] = {}
    for pos, name in enumerate(names):
        if not name:
            continue
        cells = body.iloc[:, pos].astype("string").str.strip()
        values = pd.to_numeric(cells, errors="coerce").dropna().to_numpy(dtype="float64")
        values = values[np.isfinite(values)]
        if len(values) == 0:
            logger.debug("dropping column %r: no finite numeric values", name)
            continue
        columns[name] = values
    return columns


def read_column_table(name: str, data: bytes) -> ColumnTable:
    """Parse delimited text into a :class:`ColumnTable`.

    Non-numeric and non-finite cells are skipped per column, rows with
    more fields than the header are skipped, and columns with no numeric
    value at all are dropped.
    """
    if not data or not data.strip():
        raise TableLoadError("File is empty.")

    text, enc = _decode(data)
    rows, skipped = _read_frame(text)
    if rows.shape[0] == 0 or rows.shape[1] == 0:
        raise TableLoadError("No parseable header.")
    if skipped:
        logger.warning("%s: skipped %d malformed rows", name, skipped)

    columns = _numeric_columns(rows)
    if not columns:
        raise TableLoadError("No column contains numeric values.")

    table = ColumnTable(columns=columns, source_name=name)
    logger.info(
        "Loaded %s (%s): %d columns, up to %d samples",
        name, enc, len(table), table.max_length,
    )
    return table


def _default_executor() -> ThreadPoolExecutor:
    global _LOAD_EXECUTOR
    if _LOAD_EXECUTOR is None:
        _LOAD_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="csv-load")
    return _LOAD_EXECUTOR


def load_table_async(
    name: str,
    data: bytes,
    executor: Optional[Executor] = None,
) -> "Future[ColumnTable]":
    """Parse off the calling thread; the future raises ``TableLoadError`` on failure."""
    pool = executor if executor is not None else _default_executor()
    return pool.submit(read_column_table, name, data)
