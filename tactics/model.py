from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
from enum import Enum

Tile = Tuple[int, int]  # (x, y) board coordinates

PLAYERS: Tuple[int, int] = (1, 2)
BOARD_WIDTH = 10
BOARD_HEIGHT = 8


class InvariantViolation(RuntimeError):
    """Internal state that legal play can never produce. Fatal for the match."""


class Phase(Enum):
    """Discrete mode of the turn state machine"""
    SELECTING = "selecting"
    UNIT_SELECTED_FOR_MOVE = "unit_selected_for_move"
    AWAITING_ATTACK = "awaiting_attack"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class UnitType:
    """Template defining the stats of a unit type"""
    max_hp: int
    attack: int
    defense: int
    attack_range: int  # square (Chebyshev) radius
    move_range: int  # diamond (Manhattan) radius
    display_name: str


DEFAULT_UNIT_TYPE = "warrior"

# Predefined unit types
UNIT_TYPES: Dict[str, UnitType] = {
    "warrior": UnitType(
        max_hp=120,
        attack=30,
        defense=20,
        attack_range=1,
        move_range=3,
        display_name="Warrior",
    ),
    "archer": UnitType(
        max_hp=90,
        attack=35,
        defense=10,
        attack_range=4,  # Outranges everything, folds under melee
        move_range=2,
        display_name="Archer",
    ),
    "mage": UnitType(
        max_hp=80,
        attack=40,
        defense=8,
        attack_range=3,
        move_range=2,
        display_name="Mage",
    ),
    "tank": UnitType(
        max_hp=180,
        attack=25,
        defense=30,
        attack_range=1,
        move_range=2,
        display_name="Tank",
    ),
    "knight": UnitType(
        max_hp=100,
        attack=35,
        defense=15,
        attack_range=1,
        move_range=4,
        display_name="Knight",
    ),
}


def resolve_unit_type(type_id: str) -> UnitType:
    """Look up a unit type, falling back to the warrior for unknown ids."""
    return UNIT_TYPES.get(type_id, UNIT_TYPES[DEFAULT_UNIT_TYPE])


@dataclass
class Unit:
    id: str
    owner_id: int
    type_id: str
    pos: Tile
    max_hp: int
    current_hp: int
    attack: int
    defense: int
    attack_range: int
    move_range: int
    display_name: str
    has_moved: bool = False
    has_attacked: bool = False

    @classmethod
    def create(cls, unit_id: str, type_id: str, owner_id: int, pos: Tile) -> "Unit":
        """Build a unit with stats copied from its type."""
        if owner_id not in PLAYERS:
            raise ValueError(f"owner_id must be 1 or 2, got {owner_id!r}")
        t = resolve_unit_type(type_id)
        return cls(
            id=unit_id,
            owner_id=owner_id,
            type_id=type_id,
            pos=pos,
            max_hp=t.max_hp,
            current_hp=t.max_hp,
            attack=t.attack,
            defense=t.defense,
            attack_range=t.attack_range,
            move_range=t.move_range,
            display_name=t.display_name,
        )

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    def can_move(self) -> bool:
        return not self.has_moved

    def can_attack(self) -> bool:
        return not self.has_attacked

    def reset_turn(self) -> None:
        self.has_moved = False
        self.has_attacked = False

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "type_id": self.type_id,
            "display_name": self.display_name,
            "pos": list(self.pos),
            "current_hp": self.current_hp,
            "max_hp": self.max_hp,
            "has_moved": self.has_moved,
            "has_attacked": self.has_attacked,
        }


@dataclass(frozen=True)
class Board:
    width: int = BOARD_WIDTH
    height: int = BOARD_HEIGHT

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Board dimensions must be positive, got {self.width}x{self.height}")

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def unit_at(self, units: List[Unit], x: int, y: int) -> Optional[Unit]:
        """Return the live unit standing on (x, y), if any. Linear scan."""
        for u in units:
            if u.pos == (x, y) and u.is_alive:
                return u
        return None


@dataclass(frozen=True)
class Placement:
    """One entry of a starting layout"""
    type_id: str
    owner_id: int
    x: int
    y: int


# Player 1 along the top edge, player 2 along the bottom edge
DEFAULT_LAYOUT: List[Placement] = [
    Placement("warrior", 1, 0, 0),
    Placement("archer", 1, 1, 0),
    Placement("mage", 1, 2, 0),
    Placement("tank", 1, 3, 0),
    Placement("knight", 1, 4, 0),
    Placement("warrior", 2, 5, 7),
    Placement("archer", 2, 6, 7),
    Placement("mage", 2, 7, 7),
    Placement("tank", 2, 8, 7),
    Placement("knight", 2, 9, 7),
]


@dataclass
class TurnState:
    current_player_id: int = 1
    phase: Phase = Phase.SELECTING
    selected_unit_id: Optional[str] = None
    valid_move_tiles: Set[Tile] = field(default_factory=set)
    valid_attack_tiles: Set[Tile] = field(default_factory=set)
    turn_number: int = 1
    winner_id: Optional[int] = None

    def clear_selection(self) -> None:
        self.selected_unit_id = None
        self.valid_move_tiles = set()
        self.valid_attack_tiles = set()


@dataclass
class Event:
    kind: str
    turn: int
    data: Dict
