"""CSV import routes.

Routes:
- GET  /imports/types                 - Field catalog for each import type
- POST /imports/{import_type}/preview - Parse, auto-map and validate an upload
- POST /imports/{import_type}         - Validate and write the valid rows
"""

from __future__ import annotations

import json
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from plhcc.core.change_log import ChangeLogger
from plhcc.core.exceptions import CSVParseError
from plhcc.db.repository import Repository
from plhcc.ingestion import (
    BatchImporter,
    ImportType,
    ParsedCSV,
    apply_mapping,
    auto_detect_mapping,
    parse_csv,
    validate_mapping,
    validate_rows,
)
from plhcc.ingestion.fields import IMPORT_TYPES
from plhcc.web.dependencies import get_change_logger, get_current_user_id, get_repository

router = APIRouter(prefix="/imports", tags=["imports"])


async def _parse_upload(file: UploadFile, skip_rows: int) -> ParsedCSV:
    content = await file.read()
    try:
        return parse_csv(content, skip_rows=skip_rows, filename=file.filename)
    except CSVParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def _resolve_mapping(parsed: ParsedCSV, import_type: ImportType, mapping_json: str | None) -> dict[str, str]:
    mapping = auto_detect_mapping(parsed.headers, import_type)
    if mapping_json:
        try:
            overrides = json.loads(mapping_json)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid mapping JSON") from e
        if not isinstance(overrides, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Mapping must be an object")
        mapping.update({str(k): str(v) for k, v in overrides.items() if v})
    return mapping


@router.get("/types")
async def import_types():
    return {
        import_type.value: {
            "label": info.label,
            "description": info.description,
            "fields": [
                {"key": f.key, "label": f.label, "required": f.required, "aliases": list(f.aliases)}
                for f in info.fields
            ],
        }
        for import_type, info in IMPORT_TYPES.items()
    }


@router.post("/{import_type}/preview")
async def preview_import(
    import_type: ImportType,
    file: UploadFile = File(...),
    skip_rows: int = Form(0, ge=0),
    mapping: str | None = Form(None),
    _user_id: str = Depends(get_current_user_id),
):
    """Show how an upload would be mapped and validated without writing."""
    parsed = await _parse_upload(file, skip_rows)
    resolved = _resolve_mapping(parsed, import_type, mapping)
    missing = validate_mapping(resolved, import_type)

    response = {
        "headers": parsed.headers,
        "row_count": parsed.row_count,
        "mapping": resolved,
        "missing_fields": missing,
    }
    if missing:
        return response

    validation = validate_rows(apply_mapping(parsed.rows, resolved), import_type)
    response.update(
        {
            "valid_count": validation.valid_count,
            "error_count": validation.error_count,
            "errors": [asdict(e) for e in validation.errors],
            "warnings": [asdict(w) for w in validation.warnings],
        }
    )
    return response


@router.post("/{import_type}")
async def run_import(
    import_type: ImportType,
    file: UploadFile = File(...),
    skip_rows: int = Form(0, ge=0),
    mapping: str | None = Form(None),
    repository: Repository = Depends(get_repository),
    change_log: ChangeLogger = Depends(get_change_logger),
):
    """Import the valid rows of an upload.

    Rows failing validation are reported and skipped; rows failing at write
    time are reported on the result. Neither aborts the run.
    """
    parsed = await _parse_upload(file, skip_rows)
    resolved = _resolve_mapping(parsed, import_type, mapping)

    missing = validate_mapping(resolved, import_type)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Required fields not mapped: {', '.join(missing)}",
        )

    validation = validate_rows(apply_mapping(parsed.rows, resolved), import_type)
    result = await BatchImporter(repository, change_log).run(validation.valid, import_type)

    return {
        "status": result.status.value,
        "success": result.success,
        "failed": result.failed,
        "skipped": validation.error_count,
        "errors": [asdict(e) for e in result.errors],
        "validation_errors": [asdict(e) for e in validation.errors],
        "warnings": [asdict(w) for w in validation.warnings],
        "duration_seconds": round(result.duration_seconds, 3),
    }
