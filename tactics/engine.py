from typing import Callable, Dict, List, Optional, Set, Tuple
from .model import (
    Board, DEFAULT_LAYOUT, DEFAULT_UNIT_TYPE, Event, InvariantViolation, Phase,
    Placement, PLAYERS, Tile, TurnState, UNIT_TYPES, Unit,
)
from .ranges import legal_attack_tiles, legal_move_tiles
from .combat import check_winner, resolve_attack

RenderObserver = Callable[[Dict], None]


def _tile_list(tiles: Set[Tile]) -> List[List[int]]:
    return [list(t) for t in sorted(tiles)]


class TurnEngine:
    """Turn/selection state machine for a single match.

    Every public call runs to completion and returns the events it produced.
    Render observers are notified afterwards, and only when something changed.
    """

    def __init__(self, board: Optional[Board] = None, layout: Optional[List[Placement]] = None):
        self.board = board if board is not None else Board()
        self.layout: List[Placement] = list(layout) if layout is not None else list(DEFAULT_LAYOUT)
        self.units: List[Unit] = []
        self.state = TurnState()
        self._observers: List[RenderObserver] = []
        self.setup_events: List[Event] = self._setup()

    # ----- setup -----

    def _setup(self) -> List[Event]:
        """Place the starting layout and start a fresh turn state."""
        self.state = TurnState()
        self.units = []
        evts: List[Event] = []
        counters: Dict[Tuple[int, str], int] = {}
        occupied: Set[Tile] = set()

        for p in self.layout:
            pos = (p.x, p.y)
            if not self.board.in_bounds(p.x, p.y):
                raise InvariantViolation(
                    f"Placement {p} is outside the {self.board.width}x{self.board.height} board")
            if pos in occupied:
                raise InvariantViolation(f"Two placements share tile {pos}")
            occupied.add(pos)

            key = (p.owner_id, p.type_id.upper())
            counters[key] = counters.get(key, 0) + 1
            unit_id = f"P{p.owner_id}-{key[1]}-{counters[key]}"
            u = Unit.create(unit_id, p.type_id, p.owner_id, pos)
            if p.type_id not in UNIT_TYPES:
                evts.append(Event("SetupWarning", self.state.turn_number,
                                  {"unit_id": unit_id, "type_id": p.type_id,
                                   "fallback": DEFAULT_UNIT_TYPE}))
            self.units.append(u)

        owners = {u.owner_id for u in self.units}
        if owners != set(PLAYERS):
            raise ValueError("Starting layout must give both players at least one unit")

        evts.insert(0, Event("MatchStarted", self.state.turn_number,
                             {"width": self.board.width, "height": self.board.height,
                              "units": [u.id for u in self.units],
                              "current_player_id": self.state.current_player_id}))
        return evts

    def reset(self) -> List[Event]:
        """Restart the match from its starting layout. Allowed in any phase."""
        self.setup_events = self._setup()
        self._notify(self.setup_events)
        return self.setup_events

    # ----- observers -----

    def subscribe(self, observer: RenderObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: RenderObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, evts: List[Event]) -> None:
        if not evts:
            return
        view = self.snapshot()
        for observer in list(self._observers):
            observer(view)

    # ----- lookups -----

    def unit_by_id(self, unit_id: Optional[str]) -> Optional[Unit]:
        for u in self.units:
            if u.id == unit_id:
                return u
        return None

    def _selected_unit(self) -> Unit:
        u = self.unit_by_id(self.state.selected_unit_id)
        if u is None:
            raise InvariantViolation(
                f"Phase {self.state.phase.value} with no live selected unit "
                f"(selected_unit_id={self.state.selected_unit_id!r})")
        return u

    # ----- transitions -----

    def _clear_selection(self) -> List[Event]:
        s = self.state
        if s.phase == Phase.SELECTING and s.selected_unit_id is None:
            return []
        previous = s.selected_unit_id
        s.clear_selection()
        s.phase = Phase.SELECTING
        return [Event("SelectionCleared", s.turn_number, {"unit_id": previous})]

    def _select(self, unit: Unit) -> List[Event]:
        s = self.state
        moves = legal_move_tiles(unit, self.board, self.units)
        attacks = legal_attack_tiles(unit, self.board, self.units)
        s.selected_unit_id = unit.id
        s.valid_move_tiles = moves
        s.valid_attack_tiles = attacks
        # A unit that already moved but still has targets goes straight to attacking
        if unit.has_moved and attacks:
            s.phase = Phase.AWAITING_ATTACK
        else:
            s.phase = Phase.UNIT_SELECTED_FOR_MOVE
        return [Event("UnitSelected", s.turn_number,
                      {"unit_id": unit.id, "phase": s.phase.value,
                       "move_tiles": _tile_list(moves),
                       "attack_tiles": _tile_list(attacks)})]

    def _move(self, unit: Unit, dest: Tile) -> List[Event]:
        s = self.state
        if self.board.unit_at(self.units, *dest) is not None:
            raise InvariantViolation(f"Move of {unit.id} onto occupied tile {dest}")
        old = unit.pos
        unit.pos = dest
        unit.has_moved = True
        evts = [Event("UnitMoved", s.turn_number,
                      {"unit_id": unit.id, "from": list(old), "to": list(dest)})]

        # Attack range follows the unit to its new tile
        attacks = legal_attack_tiles(unit, self.board, self.units)
        if attacks and unit.can_attack():
            s.valid_move_tiles = set()
            s.valid_attack_tiles = attacks
            s.phase = Phase.AWAITING_ATTACK
        else:
            evts += self._clear_selection()
        return evts

    def _attack(self, attacker: Unit, defender: Optional[Unit]) -> List[Event]:
        s = self.state
        if defender is None or defender.owner_id == attacker.owner_id:
            raise InvariantViolation(f"Attack tile held no enemy of {attacker.id}")
        result = resolve_attack(attacker, defender, self.units)
        evts = [Event("AttackResolved", s.turn_number,
                      {"attacker": attacker.id, "defender": defender.id,
                       "damage": result.damage_dealt, "hp": result.defender_hp,
                       "died": result.defender_died})]
        if result.defender_died:
            evts.append(Event("UnitDestroyed", s.turn_number,
                              {"unit_id": defender.id, "owner_id": defender.owner_id,
                               "killer": attacker.id}))
            winner = check_winner(self.units)
            if winner is not None:
                s.clear_selection()
                s.phase = Phase.GAME_OVER
                s.winner_id = winner
                evts.append(Event("GameOver", s.turn_number, {"winner_id": winner}))
                return evts
        evts += self._clear_selection()
        return evts

    # ----- input -----

    def tile_clicked(self, x: int, y: int) -> List[Event]:
        """Handle a click on board tile (x, y)."""
        s = self.state
        if s.phase == Phase.GAME_OVER or not self.board.in_bounds(x, y):
            return []

        clicked = self.board.unit_at(self.units, x, y)
        own = clicked is not None and clicked.owner_id == s.current_player_id

        if s.phase == Phase.SELECTING:
            evts = self._select(clicked) if own else []
        else:
            selected = self._selected_unit()
            tile = (x, y)
            if s.phase == Phase.UNIT_SELECTED_FOR_MOVE and tile in s.valid_move_tiles:
                evts = self._move(selected, tile)
            elif tile in s.valid_attack_tiles:
                evts = self._attack(selected, clicked)
            elif own and clicked is not selected:
                evts = self._select(clicked)
            else:
                evts = self._clear_selection()

        self._notify(evts)
        return evts

    def end_turn(self) -> List[Event]:
        """Hand the turn to the other player. Ignored once the game is over."""
        s = self.state
        if s.phase == Phase.GAME_OVER:
            return []
        # Both sides are refreshed, not only the player whose turn begins
        for u in self.units:
            u.reset_turn()
        previous = s.current_player_id
        s.current_player_id = 2 if previous == 1 else 1
        s.clear_selection()
        s.phase = Phase.SELECTING
        evts = [Event("TurnEnded", s.turn_number,
                      {"player_id": previous, "next_player_id": s.current_player_id})]
        s.turn_number += 1
        self._notify(evts)
        return evts

    # ----- render view -----

    def snapshot(self) -> Dict:
        """Everything a renderer needs to redraw the board."""
        s = self.state
        return {
            "width": self.board.width,
            "height": self.board.height,
            "units": [u.to_dict() for u in self.units],
            "phase": s.phase.value,
            "current_player_id": s.current_player_id,
            "turn_number": s.turn_number,
            "selected_unit_id": s.selected_unit_id,
            "move_tiles": _tile_list(s.valid_move_tiles),
            "attack_tiles": _tile_list(s.valid_attack_tiles),
            "winner_id": s.winner_id,
        }
