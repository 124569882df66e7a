"""Quote routes.

Routes:
- GET   /quotes            - Quote comparison, optionally for one project
- POST  /quotes            - Create a quote
- PATCH /quotes/{quote_id} - Edit a quote; changed fields go to the change log
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from plhcc.core.change_log import ChangeLogger
from plhcc.db.repository import Repository
from plhcc.web.dependencies import get_change_logger, get_current_user_id, get_repository
from plhcc.web.models import QuoteCreate, QuoteUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.get("")
async def list_quotes(project_id: UUID | None = None, repository: Repository = Depends(get_repository)):
    quotes = await repository.quote_comparison()
    if project_id is not None:
        quotes = [q for q in quotes if q.project_id == project_id]
    return quotes


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quote(
    body: QuoteCreate,
    repository: Repository = Depends(get_repository),
    change_log: ChangeLogger = Depends(get_change_logger),
    user_id: str = Depends(get_current_user_id),
):
    if await repository.get_project(body.project_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    quote = await repository.insert_quote(body.model_dump())
    await change_log.log_creation("quote", quote.id, user_id, body.model_dump(mode="json"))
    logger.info("Quote created", extra={"quote_id": str(quote.id), "project_id": str(quote.project_id)})
    return quote


@router.patch("/{quote_id}")
async def update_quote(quote_id: UUID, body: QuoteUpdate, repository: Repository = Depends(get_repository)):
    """Apply only the fields present in the body."""
    updates = body.model_dump(exclude_unset=True, exclude={"note"})
    quote = await repository.update_quote(quote_id, updates, note=body.note)
    if quote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")
    return quote
