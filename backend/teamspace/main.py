"""
teamspace, FastAPI entry point.

REST routes are mounted under /api. Live message traffic for a channel goes
through the /ws/messages/{channel_id} socket.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from teamspace.api import activity_logs, auth, businesses, channel_categories, channels, databases, health, roles, users
from teamspace.config import settings
from teamspace.database import get_db
from teamspace.services.message_store import MessageStore, get_message_store
from teamspace.websocket.handlers import message_ws_handler
from teamspace.websocket.manager import manager

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_ROUTERS = (auth, users, businesses, roles, channel_categories, channels, databases, activity_logs)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("teamspace starting")
    yield
    closed = await manager.close_all()
    logger.info("teamspace stopped, closed %d message sockets", closed)


app = FastAPI(
    title="teamspace",
    description="Workspace chat backend: businesses, channels and real-time messages",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Credentialed CORS cannot use a literal "*" origin, so a wildcard entry
# becomes a match-everything regex.
_explicit_origins = [origin for origin in settings.CORS_ORIGINS if origin != "*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_explicit_origins,
    allow_origin_regex=".*" if "*" in settings.CORS_ORIGINS else None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
for module in API_ROUTERS:
    app.include_router(module.router, prefix="/api")


@app.websocket("/ws/messages/{channel_id}")
async def messages_websocket_endpoint(
    websocket: WebSocket,
    channel_id: str,
    token: str | None = Query(default=None),
    db: Session = Depends(get_db),
    store: MessageStore = Depends(get_message_store),
) -> None:
    await message_ws_handler(websocket, channel_id, token, db, store)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})
