from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teamspace.database import get_db
from teamspace.websocket.manager import manager

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    connections = manager.registry.count()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected", "websocket_connections": connections}
    except SQLAlchemyError as exc:
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "websocket_connections": connections,
            "error": str(exc),
        }
