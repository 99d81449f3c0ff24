# complihr_api/services/id_sequencer.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError

from complihr_api.common.errors import InvalidArgument, StorageUnavailable
from complihr_api.extensions import db
from complihr_api.models.id_sequence import IdSequence
from complihr_api.models.master import Organization
from complihr_api.models.organization_settings import OrganizationSettings
from complihr_api.services.id_categories import (
    RESET_MONTHLY, RESET_YEARLY, CategorySpec, category_spec,
)
from complihr_api.services.id_patterns import IdPattern
from complihr_api.services.organization_settings import get_organization, get_settings

log = logging.getLogger(__name__)

"""
Business id generation.

  generate_id(org, category)  -> "ACM-EMP-2024-00001"

Every call advances the counter of its sequence scope exactly once, before
the id is formatted. The caller's session is never flushed, committed or
rolled back here: organization and pattern are read with autoflush off, and
the increment runs in its own short transaction, so issued numbers may have
gaps but are never handed out twice.

One exception, SQLite only: when the caller's session already holds a write
transaction it also holds the database write lock, and a second connection
would wait on it forever. The increment then joins the caller's transaction
and is rolled back with it. The lock keeps every other writer out until
then, so the value cannot be issued twice.

Increment strategies:
  postgresql / sqlite : INSERT .. ON CONFLICT DO UPDATE .. RETURNING (one statement)
  anything else       : SELECT .. FOR UPDATE + UPDATE/INSERT, retried on the
                        first-insert race
"""

UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# sqlstates / driver messages that mean "another transaction got there first"
_CONTENTION_SQLSTATES = ("40001", "40P01")
_CONTENTION_MESSAGES = ("database is locked", "database table is locked")


@dataclass(frozen=True)
class SequenceScope:
    organization_id: int
    sequence_type: str
    year: int = 0
    month: int = 0


def resolve_scope(organization_id: int, spec: CategorySpec, pattern: IdPattern, as_of: date) -> SequenceScope:
    period = pattern.reset_period(spec.default_reset)
    year = as_of.year if period in (RESET_MONTHLY, RESET_YEARLY) else 0
    month = as_of.month if period == RESET_MONTHLY else 0
    return SequenceScope(organization_id, spec.category.value, year, month)


def _as_date(as_of) -> date:
    if as_of is None:
        return date.today()
    if isinstance(as_of, datetime):
        return as_of.date()
    if isinstance(as_of, date):
        return as_of
    if isinstance(as_of, str):
        try:
            return date.fromisoformat(as_of.strip()[:10])
        except ValueError:
            pass
    raise InvalidArgument(f"as_of must be a date (YYYY-MM-DD), got {as_of!r}")


def _scope_filter(t, scope: SequenceScope):
    return (
        (t.c.organization_id == scope.organization_id)
        & (t.c.sequence_type == scope.sequence_type)
        & (t.c.year == scope.year)
        & (t.c.month == scope.month)
    )


def _is_contention(e: DBAPIError) -> bool:
    orig = getattr(e, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True
    msg = str(orig or e).lower()
    return any(m in msg for m in _CONTENTION_MESSAGES)


def _session_holds_sqlite_writes() -> bool:
    if db.engine.dialect.name != "sqlite" or not db.session().in_transaction():
        return False
    dbapi_conn = db.session.connection().connection.dbapi_connection
    return bool(getattr(dbapi_conn, "in_transaction", False))


@contextmanager
def counter_connection():
    """
    Connection for counter writes: a fresh transaction committed on exit, or
    the caller's own connection when it holds the SQLite write lock.
    """
    if _session_holds_sqlite_writes():
        yield db.session.connection()
        return
    with db.engine.begin() as conn:
        yield conn


def _upsert_increment(scope: SequenceScope, dialect_insert) -> int:
    t = IdSequence.__table__
    now = datetime.utcnow()
    stmt = (
        dialect_insert(t)
        .values(
            organization_id=scope.organization_id,
            sequence_type=scope.sequence_type,
            year=scope.year,
            month=scope.month,
            current_value=1,
            created_at=now,
            updated_at=now,
        )
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[t.c.organization_id, t.c.sequence_type, t.c.year, t.c.month],
        set_={"current_value": t.c.current_value + 1, "updated_at": now},
    ).returning(t.c.current_value)

    with counter_connection() as conn:
        return int(conn.execute(stmt).scalar_one())


def _locked_increment(scope: SequenceScope) -> int:
    """Row-lock fallback for databases without an upsert primitive."""
    t = IdSequence.__table__
    now = datetime.utcnow()
    with counter_connection() as conn:
        row = conn.execute(
            select(t.c.id, t.c.current_value).where(_scope_filter(t, scope)).with_for_update()
        ).first()
        if row is None:
            # a concurrent first insert surfaces as IntegrityError; caller retries
            conn.execute(insert(t).values(
                organization_id=scope.organization_id,
                sequence_type=scope.sequence_type,
                year=scope.year,
                month=scope.month,
                current_value=1,
                created_at=now,
                updated_at=now,
            ))
            return 1
        conn.execute(
            update(t).where(t.c.id == row.id)
            .values(current_value=t.c.current_value + 1, updated_at=now)
        )
        return int(row.current_value) + 1


def next_sequence_value(scope: SequenceScope) -> int:
    """
    Atomically advance the counter for `scope` and return the new value.

    Lock/serialization contention is retried (bounded by
    ID_SEQUENCE_MAX_RETRIES); anything else from the driver is reported as
    StorageUnavailable.
    """
    dialect = db.engine.dialect.name
    dialect_insert = UPSERT_DIALECTS.get(dialect)
    max_retries = int(current_app.config.get("ID_SEQUENCE_MAX_RETRIES", 5))

    for attempt in range(1, max_retries + 1):
        try:
            if dialect_insert is not None:
                return _upsert_increment(scope, dialect_insert)
            return _locked_increment(scope)
        except IntegrityError:
            if dialect_insert is not None:
                # FK failure etc.; upserts do not race on the scope key
                raise
            log.warning("id sequence %s: concurrent first insert, retry %d/%d", scope, attempt, max_retries)
        except DBAPIError as e:
            if not _is_contention(e):
                log.exception("id sequence %s: counter store unavailable", scope)
                raise StorageUnavailable("ID counter store is unavailable", payload=str(e.orig or e)) from e
            log.warning("id sequence %s: contention, retry %d/%d", scope, attempt, max_retries)
        time.sleep(0.01 * attempt)

    raise StorageUnavailable(f"Could not advance id sequence {scope.sequence_type} after {max_retries} attempts")


def peek_sequence_value(scope: SequenceScope) -> int:
    t = IdSequence.__table__
    with db.session.no_autoflush:
        val = db.session.execute(select(t.c.current_value).where(_scope_filter(t, scope))).scalar()
    return int(val or 0)


def load_pattern(organization_id, spec: CategorySpec) -> Tuple[Organization, IdPattern]:
    """
    Organization and its stored pattern for `spec`, or the category default
    when the organization has no settings row yet. Read only: pending rows in
    the caller's session are not flushed and nothing is created.
    """
    with db.session.no_autoflush:
        org = get_organization(organization_id)
        settings = OrganizationSettings.query.filter_by(organization_id=org.id).first()
    raw = settings.pattern_for(spec.category) if settings else spec.default_pattern
    return org, IdPattern.parse(raw)


def generate_id(organization_id, category, as_of=None, dept_code: Optional[str] = None) -> str:
    """
    Return the next formatted id for an organization and id category.

    Raises NotFound (unknown organization), InvalidArgument (unknown category,
    malformed stored pattern, {DEPT} without dept_code) or StorageUnavailable.
    The id is not stored anywhere; attaching it to an entity, and committing
    or rolling back that work, is up to the caller.
    """
    spec = category_spec(category)
    org, pattern = load_pattern(organization_id, spec)
    day = _as_date(as_of)

    if "DEPT" in pattern.tokens and not dept_code:
        raise InvalidArgument(
            f"Pattern for {spec.category.value} uses {{DEPT}} but no department code was given",
            payload={"pattern": pattern.raw},
        )

    scope = resolve_scope(org.id, spec, pattern, day)
    value = next_sequence_value(scope)
    # Known gap: a failure past this point leaves `value` consumed.
    new_id = pattern.render(value, day, org_code=org.code, dept_code=dept_code)
    log.debug("issued %s id %s (scope=%s value=%d)", spec.category.value, new_id, scope, value)
    return new_id


def update_pattern(organization_id, category, new_pattern) -> None:
    """Store a new pattern for a category. Counters carry on untouched."""
    spec = category_spec(category)
    pattern = IdPattern.parse(new_pattern)
    s = get_settings(organization_id)
    setattr(s, spec.pattern_field, pattern.raw)
    db.session.commit()
    log.info("organization %s %s pattern set to %r", s.organization_id, spec.category.value, pattern.raw)


def preview_pattern(pattern, count: int = 5, org_code: str = "ACME", dept_code: str = "HR", as_of=None):
    """Render `count` sample ids (counters 1..count) without touching storage."""
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= 50:
        raise InvalidArgument("count must be an integer between 1 and 50")
    return IdPattern.parse(pattern).preview(count, as_of=_as_date(as_of), org_code=org_code, dept_code=dept_code)


def current_value(organization_id, category, as_of=None) -> int:
    """Counter value last issued for the scope `as_of` falls in (0 if unused)."""
    spec = category_spec(category)
    org, pattern = load_pattern(organization_id, spec)
    return peek_sequence_value(resolve_scope(org.id, spec, pattern, _as_date(as_of)))


def _insert_default_settings(conn, organization_id: int) -> None:
    t = OrganizationSettings.__table__
    dialect_insert = UPSERT_DIALECTS.get(conn.dialect.name)
    if dialect_insert is not None:
        conn.execute(
            dialect_insert(t).values(organization_id=organization_id)
            .on_conflict_do_nothing(index_elements=[t.c.organization_id])
        )
        return
    exists = conn.execute(select(t.c.id).where(t.c.organization_id == organization_id)).first()
    if exists is None:
        conn.execute(insert(t).values(organization_id=organization_id))


def increment_legacy_sequence(organization_id, category) -> int:
    """
    Advance the simple per-category counter kept on organization_settings.
    Single UPDATE .. SET x = x + 1 RETURNING x, so concurrent callers never
    read the same value. A missing settings row is created with defaults in
    the same counter transaction.
    """
    spec = category_spec(category)
    with db.session.no_autoflush:
        org = get_organization(organization_id)
    t = OrganizationSettings.__table__
    col = t.c[spec.sequence_field]
    stmt = (
        update(t)
        .where(t.c.organization_id == org.id)
        .values({col: col + 1})
        .returning(col)
    )
    with counter_connection() as conn:
        _insert_default_settings(conn, org.id)
        val = conn.execute(stmt).scalar_one()
    return int(val)
