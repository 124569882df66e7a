"""CSV import pipeline: parse, map columns, validate, write."""

from plhcc.ingestion.fields import FieldDefinition, ImportType, get_fields
from plhcc.ingestion.importer import BatchImporter, ImportResult
from plhcc.ingestion.mapping import apply_mapping, auto_detect_mapping, reverse_mapping, validate_mapping
from plhcc.ingestion.parser import ParsedCSV, parse_csv
from plhcc.ingestion.validation import RowError, RowWarning, ValidationResult, validate_rows

__all__ = [
    "BatchImporter",
    "FieldDefinition",
    "ImportResult",
    "ImportType",
    "ParsedCSV",
    "RowError",
    "RowWarning",
    "ValidationResult",
    "apply_mapping",
    "auto_detect_mapping",
    "get_fields",
    "parse_csv",
    "reverse_mapping",
    "validate_mapping",
    "validate_rows",
]
