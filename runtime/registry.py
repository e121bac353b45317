import uuid
from typing import Dict, List, Optional
from tactics.engine import TurnEngine
from tactics.model import Board, Event, Placement
from .eventlog import EventLog

class Match:
    """One running match: its engine plus the log of everything it emitted."""

    def __init__(self, match_id: str, engine: TurnEngine):
        self.match_id = match_id
        self.engine = engine
        self.events = EventLog()
        self.events.append_many(engine.setup_events)

    def _record(self, evts: List[Event]) -> List[Event]:
        if evts:
            self.events.append_many(evts)
            print(f"[Match {self.match_id}] {', '.join(e.kind for e in evts)}")
        return evts

    def click(self, x: int, y: int) -> List[Event]:
        return self._record(self.engine.tile_clicked(x, y))

    def end_turn(self) -> List[Event]:
        return self._record(self.engine.end_turn())

    def reset(self) -> List[Event]:
        return self._record(self.engine.reset())

    def snapshot(self) -> Dict:
        view = self.engine.snapshot()
        view["match_id"] = self.match_id
        return view


class MatchRegistry:
    """Maps match handles to independent matches.

    Matches are created on demand and live until discarded; nothing is shared
    between handles.
    """

    def __init__(self):
        self._matches: Dict[str, Match] = {}

    def __contains__(self, match_id: str) -> bool:
        return match_id in self._matches

    def __len__(self) -> int:
        return len(self._matches)

    def handles(self) -> List[str]:
        return list(self._matches.keys())

    def create(self, board: Optional[Board] = None, layout: Optional[List[Placement]] = None,
               match_id: Optional[str] = None) -> Match:
        """Start a new match under `match_id` (a fresh uuid when omitted)."""
        match_id = match_id or str(uuid.uuid4())
        if match_id in self._matches:
            raise ValueError(f"Match {match_id} already exists")
        match = Match(match_id, TurnEngine(board=board, layout=layout))
        self._matches[match_id] = match
        print(f"[Registry] Created match {match_id} ({match.engine.board.width}x{match.engine.board.height}, "
              f"{len(match.engine.units)} units)")
        return match

    def get(self, match_id: str) -> Match:
        """Look up a match; raises KeyError for unknown handles."""
        try:
            return self._matches[match_id]
        except KeyError:
            raise KeyError(f"Match {match_id} not found") from None

    def get_or_create(self, match_id: str, board: Optional[Board] = None,
                      layout: Optional[List[Placement]] = None) -> Match:
        if match_id in self._matches:
            return self._matches[match_id]
        return self.create(board=board, layout=layout, match_id=match_id)

    def reset(self, match_id: str) -> List[Event]:
        return self.get(match_id).reset()

    def discard(self, match_id: str) -> None:
        """Tear down a match; raises KeyError for unknown handles."""
        self.get(match_id)
        del self._matches[match_id]
        print(f"[Registry] Discarded match {match_id}")

    def clear(self) -> None:
        if self._matches:
            print(f"[Registry] Discarding {len(self._matches)} matches")
        self._matches.clear()
