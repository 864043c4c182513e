from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from sqlalchemy import select

from causas.core.errors import FailedPrecondition
from causas.core.extensions import db
from causas.core.models import DIRECT_ROTATION_POOL, RotationState, User, user_especialidad


@dataclass(frozen=True)
class Candidate:
    user_id: int
    email: str


@dataclass
class PoolSelection:
    """Outcome of a rotation read: who was picked and where the cursor goes."""

    pool_key: str
    picked: list[Candidate] = field(default_factory=list)
    next_cursor: int = 0

    @property
    def user_ids(self) -> list[int]:
        return [c.user_id for c in self.picked]


def pool_key_for(specialty_id: int | None) -> str:
    if specialty_id is None:
        return DIRECT_ROTATION_POOL
    return str(specialty_id)


def walk_rotation(
    pool: Sequence[Candidate],
    cursor: int,
    needed: int,
    blocked: Collection[int] = (),
) -> tuple[list[Candidate], int]:
    """Round-robin walk over ``pool`` (sorted by email) starting at ``cursor``.

    Blocked lawyers are stepped over without being picked, so the cursor keeps
    indexing the whole pool. Returns the picks and the cursor for the next
    walk.
    """
    if needed <= 0:
        return [], cursor % len(pool) if pool else 0
    available = [c for c in pool if c.user_id not in blocked]
    if len(available) < needed:
        raise ValueError("not enough unblocked candidates in pool")

    length = len(pool)
    picked: list[Candidate] = []
    picked_ids: set[int] = set()
    idx = cursor % length
    while len(picked) < needed:
        candidate = pool[idx % length]
        if candidate.user_id not in blocked and candidate.user_id not in picked_ids:
            picked.append(candidate)
            picked_ids.add(candidate.user_id)
        idx += 1
    return picked, idx % length


def load_rotation_cursor(pool_key: str) -> int:
    state = db.session.execute(
        select(RotationState).where(RotationState.pool_key == pool_key).with_for_update()
    ).scalar_one_or_none()
    return state.cursor if state else 0


def load_candidate_pool(specialty_id: int | None) -> list[Candidate]:
    query = select(User.id, User.email).where(User.is_practicing.is_(True), User.is_active.is_(True))
    if specialty_id is not None:
        query = query.join(user_especialidad, user_especialidad.c.user_id == User.id).where(
            user_especialidad.c.especialidad_id == specialty_id
        )
    rows = db.session.execute(query).all()
    # Python ordering keeps the walk independent from the database collation
    return sorted((Candidate(user_id=row.id, email=row.email) for row in rows), key=lambda c: c.email)


def select_from_pool(
    specialty_id: int | None,
    blocked: Collection[int],
    needed: int,
    insufficient_message: str,
) -> PoolSelection:
    """Read the cursor and the eligible pool, and pick ``needed`` lawyers.

    ``specialty_id=None`` selects from every practicing lawyer using the shared
    direct pool. Must run inside the transaction that later calls
    :func:`advance_rotation`.
    """
    pool_key = pool_key_for(specialty_id)
    # Lock the cursor before reading the pool so both belong to one snapshot
    cursor = load_rotation_cursor(pool_key)
    pool = load_candidate_pool(specialty_id)
    try:
        picked, next_cursor = walk_rotation(pool, cursor, needed, set(blocked))
    except ValueError as exc:
        raise FailedPrecondition(insufficient_message) from exc
    return PoolSelection(pool_key=pool_key, picked=picked, next_cursor=next_cursor)


def advance_rotation(selection: PoolSelection) -> RotationState:
    state = db.session.get(RotationState, selection.pool_key)
    if state is None:
        state = RotationState(pool_key=selection.pool_key, cursor=selection.next_cursor)
        db.session.add(state)
    else:
        state.cursor = selection.next_cursor
    return state


def rotation_snapshot() -> list[RotationState]:
    return RotationState.query.order_by(RotationState.pool_key.asc()).all()
