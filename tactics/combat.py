from dataclasses import dataclass
from typing import List, Optional
from .model import InvariantViolation, PLAYERS, Unit


@dataclass(frozen=True)
class AttackResult:
    damage_dealt: int
    defender_died: bool
    defender_hp: int


def calculate_damage(attacker: Unit, defender: Unit) -> int:
    """Attack minus defense, but a hit always lands for at least 1."""
    return max(1, attacker.attack - defender.defense)


def resolve_attack(attacker: Unit, defender: Unit, units: List[Unit]) -> AttackResult:
    """Apply a single deterministic hit and drop the defender from `units` if it dies.

    The attacker's attack is spent even on a killing blow. No counterattack.
    """
    dmg = calculate_damage(attacker, defender)
    defender.current_hp = max(0, defender.current_hp - dmg)
    attacker.has_attacked = True

    died = defender.current_hp == 0
    if died:
        units.remove(defender)
    return AttackResult(damage_dealt=dmg, defender_died=died, defender_hp=defender.current_hp)


def check_winner(units: List[Unit]) -> Optional[int]:
    """Return the winning player id once one side has no live units left."""
    alive = {p: 0 for p in PLAYERS}
    for u in units:
        alive[u.owner_id] += 1

    if alive[1] == 0 and alive[2] == 0:
        raise InvariantViolation("Both players have no live units")
    if alive[1] == 0:
        return 2
    if alive[2] == 0:
        return 1
    return None
