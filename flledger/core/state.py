from __future__ import annotations
from contextlib import contextmanager
from dataclasses import asdict
from threading import RLock
from typing import Any, Dict, Iterator, List, Tuple
import logging

import yaml

from .types import Event, GlobalModel, Identity, ModelUpdate, Participant

logger = logging.getLogger(__name__)

_MISSING = object()


class LedgerState:
    """Single owner of every store and scalar of the ledger.

    All mutation goes through :meth:`transaction`, which holds one re-entrant
    lock for the whole call. Store writes made through :meth:`put` and
    :meth:`pop` are journalled with their prior value, and the scalars are
    captured on entry, so a failing call undoes only what it touched. Records
    are frozen dataclasses; updates replace them (``dataclasses.replace``)
    rather than mutating in place. Readers take :meth:`lock` as well, so no
    caller ever sees a partially applied operation.
    """

    def __init__(self) -> None:
        self._lock = RLock()

        # keyed stores
        self.participants: Dict[Identity, Participant] = {}
        self.updates: Dict[Tuple[int, Identity], ModelUpdate] = {}
        self.global_models: Dict[int, GlobalModel] = {}
        self.pending_rewards: Dict[Identity, int] = {}

        # scalars
        self.current_round: int = 0
        self.round_active: bool = False
        self.total_registered_participants: int = 0
        self.round_submission_count: int = 0

        # host clock and journal
        self.block_height: int = 0
        self.events: List[Event] = []

        # (store, key, prior value) for writes made inside open transactions
        self._undo: List[Tuple[Dict[Any, Any], Any, Any]] = []
        self._depth = 0

    def lock(self):
        return self._lock

    #######################
    # Transactions
    #######################

    def _scalars(self) -> Tuple[int, bool, int, int, int]:
        return (self.current_round, self.round_active, self.total_registered_participants,
                self.round_submission_count, self.block_height)

    def _record(self, store: Dict[Any, Any], key: Any) -> None:
        if self._depth:
            self._undo.append((store, key, store.get(key, _MISSING)))

    def put(self, store: Dict[Any, Any], key: Any, value: Any) -> None:
        """Write ``store[key]``, remembering the prior value for rollback."""
        self._record(store, key)
        store[key] = value

    def pop(self, store: Dict[Any, Any], key: Any) -> Any:
        self._record(store, key)
        return store.pop(key)

    def _rollback(self, mark: int, scalars: Tuple[int, bool, int, int, int], n_events: int) -> None:
        while len(self._undo) > mark:
            store, key, old = self._undo.pop()
            if old is _MISSING:
                store.pop(key, None)
            else:
                store[key] = old
        (self.current_round, self.round_active, self.total_registered_participants,
         self.round_submission_count, self.block_height) = scalars
        del self.events[n_events:]

    @contextmanager
    def transaction(self) -> Iterator["LedgerState"]:
        with self._lock:
            mark = len(self._undo)
            scalars = self._scalars()
            n_events = len(self.events)
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._rollback(mark, scalars, n_events)
                logger.debug("transaction rolled back at height %d", self.block_height)
                raise
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._undo.clear()

    def emit(self, kind: str, **data: Any) -> Event:
        ev = Event(kind=kind, height=self.block_height, data=data)
        self.events.append(ev)
        return ev

    #######################
    # Persistence
    #######################

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "participants": [_plain(asdict(p)) for p in self.participants.values()],
                "updates": [_plain(asdict(u)) for u in self.updates.values()],
                "global_models": [_plain(asdict(g)) for g in self.global_models.values()],
                "pending_rewards": {str(k): int(v) for k, v in self.pending_rewards.items()},
                "current_round": self.current_round,
                "round_active": self.round_active,
                "total_registered_participants": self.total_registered_participants,
                "round_submission_count": self.round_submission_count,
                "block_height": self.block_height,
                "events": [
                    {"kind": e.kind, "height": e.height, "data": _plain(e.data)}
                    for e in self.events
                ],
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerState":
        st = cls()
        for p in data.get("participants") or []:
            rec = Participant(**p)
            st.participants[rec.identity] = rec
        for u in data.get("updates") or []:
            rec = ModelUpdate(**u)
            st.updates[(rec.round, rec.identity)] = rec
        for g in data.get("global_models") or []:
            rec = GlobalModel(**g)
            st.global_models[rec.round] = rec
        st.pending_rewards = {Identity(k): int(v) for k, v in (data.get("pending_rewards") or {}).items()}
        st.current_round = int(data.get("current_round", 0))
        st.round_active = bool(data.get("round_active", False))
        st.total_registered_participants = len(st.participants)
        declared = data.get("total_registered_participants")
        if declared is not None and int(declared) != st.total_registered_participants:
            raise ValueError(
                f"total_registered_participants={declared} but {st.total_registered_participants} "
                "participant records are stored")
        st.round_submission_count = int(data.get("round_submission_count", 0))
        st.block_height = int(data.get("block_height", 0))
        st.events = [
            Event(kind=e["kind"], height=int(e["height"]), data=dict(e.get("data") or {}))
            for e in data.get("events") or []
        ]
        return st

    def save(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info("ledger state saved to %s (round %d)", path, self.current_round)

    @classmethod
    def load(cls, path: str) -> "LedgerState":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        st = cls.from_dict(data)
        logger.info("ledger state loaded from %s (round %d)", path, st.current_round)
        return st


def _plain(d: Dict[str, Any]) -> Dict[str, Any]:
    # str subclasses (Identity, UpdateHash) -> str so safe_dump accepts them
    return {k: (str(v) if isinstance(v, str) else v) for k, v in d.items()}
