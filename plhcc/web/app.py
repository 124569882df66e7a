"""FastAPI application for PLH Command Center."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from plhcc import __version__
from plhcc.config import get_config
from plhcc.core.logging import configure_logging
from plhcc.db.connection import close_db
from plhcc.web.routes import budget, call_logs, exports, health, imports, messages, quotes, tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    yield
    await close_db()


app = FastAPI(title="PLH Command Center", version=__version__, lifespan=lifespan)

app.include_router(health.router)
app.include_router(imports.router)
app.include_router(exports.router)
app.include_router(quotes.router)
app.include_router(tasks.router)
app.include_router(budget.router)
app.include_router(call_logs.router)
app.include_router(messages.router)
