from __future__ import annotations

import copy
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Type, TypeVar

from oncall.core.errors import IntegrityError
from oncall.models import Holiday, Shift, ShiftAssignment

T = TypeVar("T")

logger = logging.getLogger(__name__)


class InMemorySession:
    """Process-local store with explicit transactional units.

    ``transaction()`` serializes every check-then-write sequence behind one
    re-entrant lock and restores a snapshot if the block raises, so a
    half-applied assignment never becomes visible. Constraints are checked on
    every ``add``; callers that race past an application-level check still hit
    them.
    """

    def __init__(self) -> None:
        self._store: Dict[Type[Any], List[Any]] = defaultdict(list)
        self._id_counters: Dict[Type[Any], int] = defaultdict(int)
        self._lock = threading.RLock()
        self._depth = 0

    # transactional unit ----------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator["InMemorySession"]:
        with self._lock:
            snapshot = self._snapshot() if self._depth == 0 else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if snapshot is not None:
                    logger.debug("Rolling back transaction")
                    self._restore(snapshot)
                raise
            finally:
                self._depth -= 1

    def _snapshot(self) -> tuple:
        buckets = {model: list(objs) for model, objs in self._store.items()}
        states = [(obj, copy.copy(vars(obj))) for objs in buckets.values() for obj in objs]
        return buckets, states, dict(self._id_counters)

    def _restore(self, snapshot: tuple) -> None:
        buckets, states, counters = snapshot
        # instances keep their identity; only their field values are rewound
        for obj, state in states:
            vars(obj).clear()
            vars(obj).update(state)
        self._store = defaultdict(list, buckets)
        self._id_counters = defaultdict(int, counters)

    # writes -----------------------------------------------------------
    def add(self, instance: Any) -> None:
        with self._lock:
            self._check_constraints(instance)
            bucket = self._store[type(instance)]
            if any(obj is instance for obj in bucket):
                return
            if getattr(instance, "id", 0) in (0, None):
                self._id_counters[type(instance)] += 1
                instance.id = self._id_counters[type(instance)]
            else:
                self._id_counters[type(instance)] = max(self._id_counters[type(instance)], instance.id)
            bucket.append(instance)

    def add_all(self, instances: Iterable[Any]) -> None:
        for instance in instances:
            self.add(instance)

    def delete(self, instance: Any) -> None:
        with self._lock:
            bucket = self._store.get(type(instance), [])
            self._store[type(instance)] = [obj for obj in bucket if obj is not instance and obj.id != instance.id]

    def commit(self) -> None:
        return None

    def rollback(self) -> None:
        return None

    def close(self) -> None:
        return None

    def flush(self) -> None:
        return None

    def refresh(self, instance: Any) -> None:
        return None

    # reads ------------------------------------------------------------
    def get(self, model: Type[T], instance_id: int) -> Optional[T]:
        for obj in self._store.get(model, []):
            if getattr(obj, "id", None) == instance_id:
                return obj
        return None

    def all(self, model: Type[T]) -> List[T]:
        return list(self._store.get(model, []))

    def filter(self, model: Type[T], predicate: Callable[[T], bool]) -> List[T]:
        return [obj for obj in self._store.get(model, []) if predicate(obj)]

    # constraints ------------------------------------------------------
    def _check_constraints(self, instance: Any) -> None:
        if isinstance(instance, ShiftAssignment):
            self._check_assignment(instance)
        elif isinstance(instance, Holiday):
            self._check_holiday(instance)

    def _check_assignment(self, assignment: ShiftAssignment) -> None:
        others = [
            a for a in self._store.get(ShiftAssignment, [])
            if a.shift_id == assignment.shift_id and a is not assignment
        ]
        if any(a.worker_id == assignment.worker_id for a in others):
            raise IntegrityError(
                "Worker is already assigned to this shift",
                shift_id=assignment.shift_id,
                worker_id=assignment.worker_id,
            )
        shift = self.get(Shift, assignment.shift_id)
        if shift is None:
            raise IntegrityError("Assignment references an unknown shift", shift_id=assignment.shift_id)
        if len(others) + 1 > shift.required_doctors:
            raise IntegrityError(
                "Shift capacity exceeded",
                shift_id=shift.id,
                required_doctors=shift.required_doctors,
            )

    def _check_holiday(self, holiday: Holiday) -> None:
        if holiday.is_recurrent:
            return
        for other in self._store.get(Holiday, []):
            if other is holiday or other.id == holiday.id or other.is_recurrent:
                continue
            if other.date == holiday.date:
                raise IntegrityError("A holiday already exists on this date", date=str(holiday.date))


_default_session: Optional[InMemorySession] = None
_default_lock = threading.Lock()


def get_default_session() -> InMemorySession:
    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = InMemorySession()
        return _default_session


def reset_session() -> InMemorySession:
    global _default_session
    with _default_lock:
        _default_session = InMemorySession()
        return _default_session


@contextmanager
def get_session() -> Iterator[InMemorySession]:
    session = get_default_session()
    try:
        yield session
    finally:
        session.close()
