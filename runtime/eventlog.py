from typing import Iterable, List, Optional, Tuple
from tactics.model import Event

class EventLog:
    """Append-only record of one match's state transitions.

    Offsets are positions in the log, so a polling client can resume from the
    `next_offset` it was handed last time.
    """

    def __init__(self):
        self._log: List[Event] = []

    def __len__(self) -> int:
        return len(self._log)

    def append_many(self, evts: Iterable[Event]) -> Tuple[int, int]:
        """Append events and return the (first, next) offsets they landed at."""
        first = len(self._log)
        self._log.extend(evts)
        return first, len(self._log)

    def since(self, offset: int, limit: int = 1000,
              kinds: Optional[Iterable[str]] = None) -> Tuple[List[Event], int]:
        """Return up to `limit` events from `offset` on, optionally only the given kinds.

        The returned offset points just past the last event examined.
        """
        offset = max(0, offset)
        wanted = set(kinds) if kinds else None
        out: List[Event] = []
        pos = offset
        while pos < len(self._log) and len(out) < limit:
            e = self._log[pos]
            pos += 1
            if wanted is None or e.kind in wanted:
                out.append(e)
        return out, pos

    def last(self, kind: str) -> Optional[Event]:
        for e in reversed(self._log):
            if e.kind == kind:
                return e
        return None
