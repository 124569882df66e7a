"""Call log routes.

Routes:
- GET  /call-logs                               - Recent calls, newest first
- GET  /call-logs/by-project                    - Calls grouped by project id
- GET  /call-logs/stats/{project_id}            - Call count and pending follow-ups
- POST /call-logs                               - Log a call
- POST /call-logs/{call_log_id}/follow-up-task  - Attach the follow-up task
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from plhcc.db.repository import Repository, group_call_logs_by_project
from plhcc.web.dependencies import get_repository
from plhcc.web.models import CallLogCreate, FollowUpTaskLink

router = APIRouter(prefix="/call-logs", tags=["call-logs"])


@router.get("")
async def recent_call_logs(
    project_id: UUID | None = None,
    limit: int = Query(20, ge=1, le=500),
    repository: Repository = Depends(get_repository),
):
    return await repository.list_call_logs(project_id=project_id, limit=limit)


@router.get("/by-project")
async def call_logs_by_project(repository: Repository = Depends(get_repository)):
    return group_call_logs_by_project(await repository.list_call_logs())


@router.get("/stats/{project_id}")
async def call_stats(project_id: UUID, repository: Repository = Depends(get_repository)):
    return await repository.project_call_stats(project_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_call_log(body: CallLogCreate, repository: Repository = Depends(get_repository)):
    if body.project_id is not None and await repository.get_project(body.project_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return await repository.insert_call_log(body.model_dump())


@router.post("/{call_log_id}/follow-up-task")
async def link_follow_up_task(
    call_log_id: UUID, body: FollowUpTaskLink, repository: Repository = Depends(get_repository)
):
    log = await repository.link_call_log_task(call_log_id, body.task_id)
    if log is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call log or task not found")
    return log
