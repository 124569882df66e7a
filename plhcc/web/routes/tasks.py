"""Task routes.

Routes:
- GET  /tasks/war-room          - Open tasks, most urgent first
- POST /tasks/{task_id}/status  - Quick-entry status change
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from plhcc.db.repository import Repository
from plhcc.web.dependencies import get_repository
from plhcc.web.models import TaskStatusUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/war-room")
async def war_room(repository: Repository = Depends(get_repository)):
    return await repository.war_room()


@router.post("/{task_id}/status")
async def change_task_status(task_id: UUID, body: TaskStatusUpdate, repository: Repository = Depends(get_repository)):
    task = await repository.update_task_status(
        task_id,
        new_status=body.status,
        note=body.note,
        next_action_date=body.next_action_date,
    )
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task
