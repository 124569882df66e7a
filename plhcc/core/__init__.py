"""Cross-cutting services: logging, errors, change log, state store."""
