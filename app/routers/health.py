import time
from fastapi import APIRouter


router = APIRouter()


@router.get("/health", tags=["Health"], summary="Service liveness check")
async def health():
    return {"status": "ok", "time": time.time()}


@router.get("/", tags=["Health"], summary="Service root")
async def root():
    return {
        "service": "Weighted Draw Service",
        "version": "0.1.0",
        "endpoints": [
            "/draw/start",
            "/draw/cancel",
            "/draw/state",
            "/draw/result",
            "/draw/stream",
            "/draw/ws",
            "/draw/ws-info",
            "/health",
        ],
    }
