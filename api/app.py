from dataclasses import asdict
from typing import List, Optional
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from tactics.model import Board, Event, InvariantViolation, Placement, UNIT_TYPES
from runtime.registry import Match, MatchRegistry
from .schemas import ActionResponse, ClickIn, EventsResponse, StartRequest

app = FastAPI(title="Grid Tactics API")
registry = MatchRegistry()

# Browser client dev servers
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:8080"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _event_dict(e: Event) -> dict:
    return {"kind": e.kind, "turn": e.turn, "data": e.data}

def _get_match(match_id: str) -> Match:
    try:
        return registry.get(match_id)
    except KeyError:
        raise HTTPException(404, f"Match {match_id} not found")

def _action_response(match: Match, evts: List[Event]) -> ActionResponse:
    return ActionResponse(events=[_event_dict(e) for e in evts], state=match.snapshot())

@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request: Request, exc: InvariantViolation):
    """Engine bug, not a bad request. The match is not recoverable."""
    print(f"[API] FATAL {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc), "fatal": True})

@app.on_event("shutdown")
async def shutdown():
    """Drop every running match."""
    registry.clear()

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": "Grid Tactics API",
        "docs": "/docs",
        "version": "1.0"
    }

@app.get("/unit-types")
async def get_unit_types():
    """Stat table for every built-in unit type."""
    return {type_id: asdict(t) for type_id, t in UNIT_TYPES.items()}

@app.post("/matches")
async def create_match(req: Optional[StartRequest] = None):
    """Start a new match and return its handle."""
    req = req or StartRequest()
    layout = None
    if req.layout is not None:
        layout = [Placement(p.type_id, p.owner_id, p.x, p.y) for p in req.layout]
    if req.match_id and req.match_id in registry:
        raise HTTPException(409, f"Match {req.match_id} already exists")
    try:
        match = registry.create(board=Board(req.width, req.height), layout=layout,
                                match_id=req.match_id)
    except (InvariantViolation, ValueError) as e:
        # Client-supplied layout, so a bad one is the caller's problem
        raise HTTPException(400, str(e))
    return {"match_id": match.match_id}

@app.get("/matches/{match_id}/state")
async def get_state(match_id: str):
    """Get the current render view."""
    return _get_match(match_id).snapshot()

@app.post("/matches/{match_id}/click")
async def click_tile(match_id: str, click: ClickIn):
    """Feed one tile click to the turn engine."""
    match = _get_match(match_id)
    evts = match.click(click.x, click.y)
    return _action_response(match, evts)

@app.post("/matches/{match_id}/end-turn")
async def end_turn(match_id: str):
    match = _get_match(match_id)
    return _action_response(match, match.end_turn())

@app.post("/matches/{match_id}/reset")
async def reset_match(match_id: str):
    """Restart from the starting layout."""
    match = _get_match(match_id)
    return _action_response(match, match.reset())

@app.get("/matches/{match_id}/events")
async def get_events(match_id: str, since: int = 0, limit: int = 500,
                     kind: Optional[List[str]] = Query(default=None)):
    """Get events since offset."""
    match = _get_match(match_id)
    evts, next_offset = match.events.since(since, limit, kinds=kind)
    return EventsResponse(
        next_offset=next_offset,
        events=[_event_dict(e) for e in evts]
    )

@app.delete("/matches/{match_id}")
async def delete_match(match_id: str):
    _get_match(match_id)
    registry.discard(match_id)
    return {"discarded": match_id}
