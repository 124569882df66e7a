"""Message template routes.

Routes:
- POST /messages/render - Fill a subject/body template with project values
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from plhcc.messages import render_message
from plhcc.web.dependencies import get_current_user_id
from plhcc.web.models import MessageRenderRequest

router = APIRouter(prefix="/messages", tags=["messages"], dependencies=[Depends(get_current_user_id)])


@router.post("/render")
async def render(body: MessageRenderRequest):
    return asdict(render_message(body.body_template, body.variables, subject_template=body.subject_template))
