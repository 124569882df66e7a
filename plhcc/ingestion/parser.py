"""CSV parsing for imports.

Files may carry description rows above the real header, so the header row is
chosen by ``skip_rows`` rather than assumed to be the first line.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

import pandas as pd

from plhcc.config import get_config
from plhcc.core.exceptions import CSVParseError

logger = logging.getLogger(__name__)

CSVSource = str | Path | bytes | BinaryIO

EXCEL_SUFFIXES = (".xlsx", ".xls")


@dataclass
class ParsedCSV:
    """Header row plus data rows keyed by header."""

    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _read_bytes(source: CSVSource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise CSVParseError(f"Failed to parse CSV: file not found: {path}")
        return path.read_bytes()
    return source.read()


def _check_size(content: bytes, max_file_size_mb: int) -> None:
    size_mb = len(content) / (1024 * 1024)
    if size_mb > max_file_size_mb:
        raise CSVParseError(
            f"File too large ({size_mb:.1f}MB). Maximum allowed: {max_file_size_mb}MB"
        )


def _read_frame(content: bytes, excel: bool) -> pd.DataFrame:
    if excel:
        frame = pd.read_excel(io.BytesIO(content), header=None, dtype=str, keep_default_na=False)
        # Literal "NA" / "null" text survives; only truly empty cells are missing.
        return frame.mask(frame == "")

    text = content.decode("utf-8-sig")
    # Description rows above the header are often narrower than the data, so
    # size the frame to the widest line instead of letting pandas infer it.
    width = max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        return pd.DataFrame()

    return pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )


def _cells(row: tuple) -> list[str | None]:
    """Cell values with ``None`` for cells the line did not have."""
    return [None if pd.isna(value) else str(value).strip() for value in row]


def parse_csv(source: CSVSource, skip_rows: int = 0, filename: str | None = None) -> ParsedCSV:
    """Parse ``source`` into headers and row dicts.

    Row ``skip_rows`` (0-based, blank lines not counted) is the header row.
    Blank header cells become ``Column N``. Rows whose cells are all blank are
    dropped; cells missing from short rows read as ``""``. ``.xlsx`` files
    (by path suffix or ``filename``) are read from their first sheet.

    Raises:
        CSVParseError: If the file is unreadable, too large, has too many
            rows, has a negative skip_rows, or has no header row after
            skipping.
    """
    limits = get_config().imports
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    excel = Path(name).suffix.lower() in EXCEL_SUFFIXES

    content = _read_bytes(source)
    _check_size(content, limits.max_file_size_mb)

    try:
        frame = _read_frame(content, excel)
    except (ValueError, OSError, UnicodeDecodeError, csv.Error) as e:
        # pandas.errors.ParserError subclasses ValueError
        raise CSVParseError(f"Failed to parse CSV: {e}") from e

    all_rows = [_cells(row) for row in frame.itertuples(index=False, name=None)]

    if skip_rows < 0:
        raise CSVParseError(f"Invalid skip_rows: {skip_rows}")
    if len(all_rows) <= skip_rows:
        raise CSVParseError("Not enough rows after skipping")

    header_cells = all_rows[skip_rows]
    while header_cells and header_cells[-1] is None:
        header_cells = header_cells[:-1]
    headers = [value or f"Column {idx + 1}" for idx, value in enumerate(header_cells)]

    rows: list[dict[str, str]] = []
    for raw in all_rows[skip_rows + 1 :]:
        if not any(raw):
            continue
        rows.append({header: raw[idx] or "" for idx, header in enumerate(headers)})

    if len(rows) > limits.max_rows:
        raise CSVParseError(f"Too many rows ({len(rows):,}). Maximum allowed: {limits.max_rows:,}")

    logger.info("Parsed CSV", extra={"headers": len(headers), "rows": len(rows)})
    return ParsedCSV(headers=headers, rows=rows)
