from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from tactics.model import BOARD_HEIGHT, BOARD_WIDTH

class PlacementIn(BaseModel):
    """One starting unit."""
    type_id: str
    owner_id: Literal[1, 2]
    x: int
    y: int

class StartRequest(BaseModel):
    """Match creation request schema. Omitted layout = the default two-row setup."""
    width: int = Field(default=BOARD_WIDTH, ge=1, le=64)
    height: int = Field(default=BOARD_HEIGHT, ge=1, le=64)
    layout: Optional[List[PlacementIn]] = None
    match_id: Optional[str] = None

class ClickIn(BaseModel):
    """Board coordinate already translated from the pointer position."""
    x: int
    y: int

class ActionResponse(BaseModel):
    events: list[dict]
    state: dict

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: list[dict]
