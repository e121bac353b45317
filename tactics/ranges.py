from typing import Iterator, List, Set, Tuple
from .model import Board, Tile, Unit


def _offsets(radius: int) -> Iterator[Tuple[int, int]]:
    """Yield every (dx, dy) in the square [-radius, radius]^2."""
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            yield dx, dy


def manhattan(a: Tile, b: Tile) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def chebyshev(a: Tile, b: Tile) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def legal_move_tiles(unit: Unit, board: Board, units: List[Unit]) -> Set[Tile]:
    """Empty in-bounds tiles within the unit's Manhattan move diamond.

    Only the destination matters: units standing in between do not block.
    """
    if not unit.can_move():
        return set()
    x0, y0 = unit.pos
    r = unit.move_range
    tiles: Set[Tile] = set()
    for dx, dy in _offsets(r):
        if abs(dx) + abs(dy) > r:
            continue
        x, y = x0 + dx, y0 + dy
        # Own tile drops out here because the unit occupies it
        if board.in_bounds(x, y) and board.unit_at(units, x, y) is None:
            tiles.add((x, y))
    return tiles


def legal_attack_tiles(unit: Unit, board: Board, units: List[Unit]) -> Set[Tile]:
    """Enemy-occupied tiles within the unit's square attack range. No line of sight."""
    if not unit.can_attack():
        return set()
    x0, y0 = unit.pos
    tiles: Set[Tile] = set()
    for dx, dy in _offsets(unit.attack_range):
        x, y = x0 + dx, y0 + dy
        if not board.in_bounds(x, y):
            continue
        target = board.unit_at(units, x, y)
        if target is not None and target.owner_id != unit.owner_id:
            tiles.add((x, y))
    return tiles
