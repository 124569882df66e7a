"""Column mapping between raw CSV headers and canonical field keys."""

from __future__ import annotations

import re

from plhcc.ingestion.fields import ImportType, get_fields

RawRow = dict[str, str]
MappedRow = dict[str, str]

_SEPARATORS = re.compile(r"[_\s-]")


def normalize_header(value: str) -> str:
    """Lowercase and drop underscores, whitespace and hyphens."""
    return _SEPARATORS.sub("", value.lower())


def auto_detect_mapping(headers: list[str], import_type: ImportType | str) -> dict[str, str]:
    """Guess which header feeds each field.

    Fields are visited in catalog order and take the first header (in file
    order) matching one of their aliases. A header claimed by an earlier
    field is skipped, so two fields never share a column. Fields with no
    match are left out.
    """
    mapping: dict[str, str] = {}
    claimed: set[str] = set()

    for field in get_fields(import_type):
        aliases = {normalize_header(alias) for alias in field.aliases}
        for header in headers:
            if header in claimed:
                continue
            if normalize_header(header) in aliases:
                mapping[field.key] = header
                claimed.add(header)
                break

    return mapping


def apply_mapping(rows: list[RawRow], mapping: dict[str, str]) -> list[MappedRow]:
    """Re-key rows by field; unmapped or absent columns are dropped."""
    mapped_rows = []
    for row in rows:
        mapped: MappedRow = {}
        for field_key, header in mapping.items():
            if header and header in row:
                mapped[field_key] = row[header]
        mapped_rows.append(mapped)
    return mapped_rows


def reverse_mapping(rows: list[MappedRow], mapping: dict[str, str]) -> list[RawRow]:
    """Inverse of :func:`apply_mapping` for the mapped columns."""
    return [
        {header: row[field_key] for field_key, header in mapping.items() if header and field_key in row}
        for row in rows
    ]


def validate_mapping(mapping: dict[str, str], import_type: ImportType | str) -> list[str]:
    """Return the required field keys that have no source column."""
    return [f.key for f in get_fields(import_type) if f.required and not mapping.get(f.key)]
