from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class Candidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    id: str
    name: str = ""
    department: Optional[str] = None
    supervisor: Optional[str] = None
    total_tickets: float = Field(0.0, ge=0, alias="totalTickets")  # selection weight
    nps: Optional[float] = None
    nrpc: Optional[float] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class DrawRequest(BaseModel):
    candidates: List[Candidate] = Field(default_factory=list)
    winner_count: int = 1


class DrawStartResponse(BaseModel):
    session_id: Optional[str] = None
    started: bool
    phase: str


class DrawCancelResponse(BaseModel):
    cancelled: bool


class DrawSnapshot(BaseModel):
    session_id: Optional[str] = None
    phase: str = "idle"
    countdown_remaining: Optional[int] = None
    displayed: Optional[Candidate] = None
    reveal_index: Optional[int] = None
    winners: List[Candidate] = Field(default_factory=list)  # revealed so far
    winner_count: int = 0
    pool_size: int = 0


class DrawResult(BaseModel):
    session_id: str
    started_at: float
    finished_at: float
    winner_count: int
    pool_size: int
    winners: List[Candidate]


class WsInfo(BaseModel):
    url: str
    event_format: str = Field(
        description="WebSocket message format: JSON with event and data fields"
    )
    example_message: Dict[str, Any]
    note: Optional[str] = None
