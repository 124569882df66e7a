"""Workbook export routes.

Routes:
- GET /exports/executive-report - Six-sheet executive report (xlsx)
- GET /exports/backup           - Full data backup (xlsx)
"""

from __future__ import annotations

import logging
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from plhcc.config import get_config
from plhcc.core.exceptions import ExportDataError
from plhcc.db.repository import Repository
from plhcc.models import utcnow
from plhcc.reporting.backup import write_data_backup
from plhcc.reporting.excel_export import export_filename, write_executive_report
from plhcc.reporting.fetch import load_backup_data, load_export_data
from plhcc.web.dependencies import get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exports", tags=["exports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/executive-report")
async def executive_report(repository: Repository = Depends(get_repository)):
    """Download the executive report for the current user."""
    now = utcnow()
    window = get_config().report.activity_window_days
    try:
        data = await load_export_data(repository, now, window)
    except ExportDataError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    logger.info("Executive report generated", extra={"projects": len(data.executive_summary)})
    return _xlsx_response(write_executive_report(data), export_filename(now))


@router.get("/backup")
async def data_backup(repository: Repository = Depends(get_repository)):
    now = utcnow()
    try:
        data = await load_backup_data(repository, now)
    except ExportDataError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    return _xlsx_response(write_data_backup(data), export_filename(now, "Data-Backup"))
