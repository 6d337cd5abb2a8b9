# Overview: Active player sessions at a table, folded from the buy-in/cash-out log.

"""
One rule, two drivers:

- ActiveSessionTracker.apply_* is the incremental reducer (feed events as
  they happen).
- fold_events() replays a whole log through the same reducer; the
  persisted read path (table_service.active_sessions_for_table) uses it.

Both see events in chronological order, so they always agree. A player's
net is sum(buy-ins) - sum(cash_out.total_buy_in); at net <= 0 the player
is not seated. buy_in_count and start_time always cover every buy-in of
the player at the table, including those before an earlier cash-out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from ..time_utils import to_utc_z


@dataclass
class ActiveSession:
    player_id: int
    player_name: str
    table_id: int
    total_buy_in_cents: int
    buy_in_count: int
    start_time: datetime

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "table_id": self.table_id,
            "total_buy_in_cents": self.total_buy_in_cents,
            "buy_in_count": self.buy_in_count,
            "start_time": to_utc_z(self.start_time),
        }


@dataclass(frozen=True)
class TableEvent:
    """Minimal view of a BuyIn (kind="buy_in") or CashOut (kind="cash_out")."""
    kind: str
    player_id: int
    amount_cents: int
    occurred_at: datetime
    seq: int = 0
    player_name: str = ""


@dataclass
class ActiveSessionTracker:
    table_id: int
    # player_id -> running totals; kept after the player cashes out
    _players: dict[int, ActiveSession] = field(default_factory=dict)

    def apply_buy_in(self, player_id: int, amount_cents: int, at: datetime, player_name: str = "") -> None:
        existing = self._players.get(player_id)
        if existing:
            existing.total_buy_in_cents += amount_cents
            existing.buy_in_count += 1
            if at < existing.start_time:
                existing.start_time = at
            return
        self._players[player_id] = ActiveSession(
            player_id=player_id,
            player_name=player_name or "Desconhecido",
            table_id=self.table_id,
            total_buy_in_cents=amount_cents,
            buy_in_count=1,
            start_time=at,
        )

    def apply_cash_out(self, player_id: int, total_buy_in_cents: int) -> None:
        existing = self._players.get(player_id)
        if not existing:
            return
        existing.total_buy_in_cents -= total_buy_in_cents

    def apply(self, event: TableEvent) -> None:
        if event.kind == "buy_in":
            self.apply_buy_in(event.player_id, event.amount_cents, event.occurred_at, event.player_name)
        elif event.kind == "cash_out":
            self.apply_cash_out(event.player_id, event.amount_cents)
        else:
            raise ValueError(f"Unknown table event kind: {event.kind}")

    def net_for(self, player_id: int) -> int:
        existing = self._players.get(player_id)
        if not existing or existing.total_buy_in_cents <= 0:
            return 0
        return existing.total_buy_in_cents

    def sessions(self) -> list[ActiveSession]:
        seated = [s for s in self._players.values() if s.total_buy_in_cents > 0]
        return sorted(seated, key=lambda s: (s.start_time, s.player_id))


def order_events(events: Iterable[TableEvent]) -> list[TableEvent]:
    # Same timestamp: buy-ins before cash-outs, then insertion order
    return sorted(events, key=lambda e: (e.occurred_at, 0 if e.kind == "buy_in" else 1, e.seq))


def fold_events(table_id: int, events: Iterable[TableEvent]) -> ActiveSessionTracker:
    tracker = ActiveSessionTracker(table_id=table_id)
    for event in order_events(events):
        tracker.apply(event)
    return tracker
