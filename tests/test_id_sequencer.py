import os
import re
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from complihr_api import create_app
from complihr_api.common.errors import InvalidArgument, NotFound, StorageUnavailable
from complihr_api.extensions import db
from complihr_api.models.id_sequence import IdSequence
from complihr_api.models.master import Organization
from complihr_api.services import id_sequencer
from complihr_api.services.id_sequencer import (
    SequenceScope, current_value, generate_id, increment_legacy_sequence,
    next_sequence_value, update_pattern,
)


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app()
    with app.app_context():
        db.create_all()
        yield app


@pytest.fixture(scope="function")
def org(app):
    o = Organization(code="ACM", name="Acme Retail Ltd")
    db.session.add(o)
    db.session.commit()
    return o


def _seq(s: str) -> int:
    return int(re.search(r"(\d+)$", s).group(1))


def test_first_employee_id_matches_default_pattern(org):
    assert generate_id(org.id, "employee", as_of=date(2024, 6, 1)) == "ACM-EMP-2024-00001"


def test_consecutive_calls_increase_by_exactly_one(org):
    ids = [generate_id(org.id, "leave", as_of=date(2024, 6, 1)) for _ in range(25)]
    assert len(set(ids)) == 25
    nums = [_seq(i) for i in ids]
    assert nums == list(range(1, 26))
    assert ids[-1] == "ACM-LV-2024-0025"


def test_pattern_change_does_not_reset_counter(org):
    db.session.add(IdSequence(organization_id=org.id, sequence_type="employee",
                              year=2024, month=0, current_value=41))
    db.session.commit()
    assert generate_id(org.id, "employee", as_of=date(2024, 8, 1)) == "ACM-EMP-2024-00042"

    update_pattern(org.id, "employee", "E{YY}/{ORG}/{SEQUENCE:6}")
    assert generate_id(org.id, "employee", as_of=date(2024, 8, 2)) == "E24/ACM/000043"


def test_monthly_pattern_counts_each_month_separately(org):
    jan = generate_id(org.id, "payroll", as_of=date(2024, 1, 31))
    feb = generate_id(org.id, "payroll", as_of=date(2024, 2, 1))
    jan2 = generate_id(org.id, "payroll", as_of=date(2024, 1, 15))
    assert jan == "ACM-PAY-202401-0001"
    assert feb == "ACM-PAY-202402-0001"
    assert jan2 == "ACM-PAY-202401-0002"


def test_daily_date_token_shares_the_monthly_counter(org):
    a = generate_id(org.id, "shift", as_of=date(2024, 3, 1))
    b = generate_id(org.id, "shift", as_of=date(2024, 3, 2))
    c = generate_id(org.id, "shift", as_of=date(2024, 4, 1))
    assert (a, b, c) == ("ACM-SH-20240301-001", "ACM-SH-20240302-002", "ACM-SH-20240401-001")


def test_yearly_counters_reset_per_year(org):
    assert generate_id(org.id, "expense", as_of=date(2024, 12, 31)) == "ACM-EXP-2024-0001"
    assert generate_id(org.id, "expense", as_of=date(2025, 1, 1)) == "ACM-EXP-2025-0001"
    assert generate_id(org.id, "expense", as_of=date(2024, 12, 31)) == "ACM-EXP-2024-0002"


def test_department_codes_never_reset(org):
    assert generate_id(org.id, "department_code", as_of=date(2024, 12, 31)) == "ACM-DEPT-001"
    assert generate_id(org.id, "department-code", as_of=date(2025, 1, 1)) == "ACM-DEPT-002"


def test_yearly_category_without_year_token_keeps_counting(org):
    update_pattern(org.id, "leave", "LV{SEQUENCE:3}")
    assert generate_id(org.id, "leave", as_of=date(2024, 12, 31)) == "LV001"
    assert generate_id(org.id, "leave", as_of=date(2025, 1, 1)) == "LV002"


def test_organizations_have_independent_counters(org):
    other = Organization(code="BRT", name="Brit Stores")
    db.session.add(other)
    db.session.commit()
    d = date(2024, 5, 5)
    assert generate_id(org.id, "employee", as_of=d) == "ACM-EMP-2024-00001"
    assert generate_id(other.id, "employee", as_of=d) == "BRT-EMP-2024-00001"
    assert generate_id(org.id, "employee", as_of=d) == "ACM-EMP-2024-00002"


def test_dept_token_needs_dept_code_and_does_not_consume_a_value(org):
    update_pattern(org.id, "employee", "{ORG}-{DEPT}-{SEQUENCE:4}")
    with pytest.raises(InvalidArgument):
        generate_id(org.id, "employee")
    assert current_value(org.id, "employee") == 0
    assert generate_id(org.id, "employee", dept_code="OPS") == "ACM-OPS-0001"


def test_unknown_category_is_invalid_argument(org):
    with pytest.raises(InvalidArgument):
        generate_id(org.id, "timesheet")


def test_unknown_organization_is_not_found(app):
    with pytest.raises(NotFound):
        generate_id(999, "employee")


def test_bad_as_of_is_invalid_argument(org):
    with pytest.raises(InvalidArgument):
        generate_id(org.id, "employee", as_of="31/01/2024")


def test_counter_is_consumed_even_if_caller_rolls_back(org):
    d = date(2024, 6, 1)
    generate_id(org.id, "employee", as_of=d)
    db.session.rollback()
    assert generate_id(org.id, "employee", as_of=d) == "ACM-EMP-2024-00002"


def test_update_pattern_validates_and_keeps_old_pattern(org):
    with pytest.raises(InvalidArgument):
        update_pattern(org.id, "employee", "{ORG}-{NOPE}-{SEQUENCE:3}")
    with pytest.raises(InvalidArgument):
        update_pattern(org.id, "employee", "{ORG}-" + "X" * 100 + "{SEQUENCE:3}")
    with pytest.raises(InvalidArgument):
        update_pattern(org.id, "bogus", "{SEQUENCE:3}")
    with pytest.raises(NotFound):
        update_pattern(404, "employee", "{SEQUENCE:3}")
    assert generate_id(org.id, "employee", as_of=date(2024, 1, 1)) == "ACM-EMP-2024-00001"


def test_current_value_reads_without_incrementing(org):
    d = date(2024, 2, 10)
    assert current_value(org.id, "payroll", as_of=d) == 0
    generate_id(org.id, "payroll", as_of=d)
    generate_id(org.id, "payroll", as_of=d)
    assert current_value(org.id, "payroll", as_of=d) == 2
    assert current_value(org.id, "payroll", as_of=d) == 2
    assert current_value(org.id, "payroll", as_of=date(2024, 3, 1)) == 0


def test_legacy_sequence_increments_by_one(org):
    assert increment_legacy_sequence(org.id, "expense") == 1
    assert increment_legacy_sequence(org.id, "expense") == 2
    assert increment_legacy_sequence(org.id, "leave") == 1


def test_row_lock_fallback_counts_like_the_upsert(org, monkeypatch):
    monkeypatch.setattr(id_sequencer, "UPSERT_DIALECTS", {})
    scope = SequenceScope(org.id, "employee", 2024, 0)
    assert [next_sequence_value(scope) for _ in range(3)] == [1, 2, 3]
    monkeypatch.undo()
    assert next_sequence_value(scope) == 4


def test_contention_is_retried(org, monkeypatch):
    real = id_sequencer._upsert_increment
    calls = {"n": 0}

    def flaky(scope, dialect_insert):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return real(scope, dialect_insert)

    monkeypatch.setattr(id_sequencer, "_upsert_increment", flaky)
    assert generate_id(org.id, "employee", as_of=date(2024, 1, 1)) == "ACM-EMP-2024-00001"
    assert calls["n"] == 2


def test_unreachable_store_raises_storage_unavailable(org, monkeypatch):
    def down(scope, dialect_insert):
        raise OperationalError("INSERT", {}, Exception("could not connect to server"))

    monkeypatch.setattr(id_sequencer, "_upsert_increment", down)
    with pytest.raises(StorageUnavailable):
        generate_id(org.id, "employee")


def test_persistent_contention_gives_up(app, org, monkeypatch):
    app.config["ID_SEQUENCE_MAX_RETRIES"] = 2

    def locked(scope, dialect_insert):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(id_sequencer, "_upsert_increment", locked)
    with pytest.raises(StorageUnavailable):
        generate_id(org.id, "employee")
