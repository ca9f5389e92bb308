import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.state import reset_machine
from app.core.tags import tags_metadata
from app.routers.draw import router as draw_router
from app.routers.health import router as health_router


log = logging.getLogger(__name__)

app = FastAPI(
    title="Weighted Draw Service",
    version="0.1.0",
    description=(
        "Timed winner draw over a weighted candidate pool.\n\n"
        "Phases: countdown, cycling highlight, sequential reveal, completion. "
        "Follow them over SSE or WebSocket."
    ),
    openapi_tags=tags_metadata,
    docs_url="/swagger",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def _shutdown():
    # pending draw timers belong to this loop
    log.info("shutting down, cancelling active draw")
    reset_machine()


# Routers
app.include_router(draw_router)
app.include_router(health_router)
