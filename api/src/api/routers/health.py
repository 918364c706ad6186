"""Health check."""

from daybook.database import Database
from daybook.errors import StoreError
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_database

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "service": "daybook-api"}


@router.get("/health/ready")
async def readiness_check(database: Database = Depends(get_database)):
    try:
        await database.ping()
        return {"status": "ready"}
    except StoreError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": exc.message},
        )
