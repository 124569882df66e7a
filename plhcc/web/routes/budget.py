"""Budget routes.

Routes:
- GET    /budget/dashboard        - Budget and quote rollup, optionally for one project
- PATCH  /budget/items/{item_id}  - Edit a line item
- DELETE /budget/items/{item_id}  - Delete a line item
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from plhcc.core.change_log import ChangeLogger
from plhcc.core.exceptions import ExportDataError
from plhcc.db.repository import Repository
from plhcc.reporting.fetch import load_budget_dashboard
from plhcc.web.dependencies import get_change_logger, get_current_user_id, get_repository
from plhcc.web.models import LineItemUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budget", tags=["budget"])


@router.get("/dashboard")
async def budget_dashboard(project_id: UUID | None = None, repository: Repository = Depends(get_repository)):
    try:
        return await load_budget_dashboard(repository, project_id)
    except ExportDataError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e


@router.patch("/items/{item_id}")
async def update_line_item(
    item_id: UUID,
    body: LineItemUpdate,
    repository: Repository = Depends(get_repository),
    change_log: ChangeLogger = Depends(get_change_logger),
    user_id: str = Depends(get_current_user_id),
):
    result = await repository.update_line_item(item_id, body.model_dump(exclude_unset=True))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Line item not found")

    item, changes = result
    await change_log.log_change(
        "budget_line_item", item.id, user_id, changes, note=f"Updated budget line item: {item.item_name}"
    )
    return item


@router.delete("/items/{item_id}")
async def delete_line_item(
    item_id: UUID,
    repository: Repository = Depends(get_repository),
    change_log: ChangeLogger = Depends(get_change_logger),
    user_id: str = Depends(get_current_user_id),
):
    item = await repository.delete_line_item(item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Line item not found")

    snapshot = {
        "item_name": item.item_name,
        "budgeted_amount": item.budgeted_amount,
        "actual_amount": item.actual_amount,
    }
    await change_log.log_deletion(
        "budget_line_item", item.id, user_id, snapshot, note=f"Deleted budget line item: {item.item_name}"
    )
    logger.info("Budget line item deleted", extra={"item_id": str(item.id)})
    return {"deleted": str(item.id)}
