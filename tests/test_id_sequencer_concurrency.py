import re
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from complihr_api import create_app
from complihr_api.extensions import db
from complihr_api.models.master import Organization
from complihr_api.services.id_sequencer import current_value, generate_id
from complihr_api.services.organization_settings import ensure_settings

WORKERS = 6
PER_WORKER = 10


@pytest.fixture(scope="function")
def file_app(tmp_path, monkeypatch):
    # in-memory sqlite is a single shared connection; a file gives each thread its own
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'sequences.db'}")
    app = create_app()
    with app.app_context():
        db.create_all()
        org = Organization(code="ACM", name="Acme Retail Ltd")
        db.session.add(org)
        db.session.commit()
        ensure_settings(org)
        app.config["TEST_ORG_ID"] = org.id
    yield app
    with app.app_context():
        db.engine.dispose()


def _issue_many(app, org_id, category, as_of):
    out = []
    for _ in range(PER_WORKER):
        with app.app_context():
            out.append(generate_id(org_id, category, as_of=as_of))
    return out


def test_parallel_callers_never_share_a_value(file_app):
    org_id = file_app.config["TEST_ORG_ID"]
    as_of = date(2024, 5, 1)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(_issue_many, file_app, org_id, "employee", as_of) for _ in range(WORKERS)]
        ids = [i for f in futures for i in f.result()]

    total = WORKERS * PER_WORKER
    assert len(ids) == total
    assert len(set(ids)) == total
    nums = sorted(int(re.search(r"(\d+)$", i).group(1)) for i in ids)
    assert nums == list(range(1, total + 1))

    with file_app.app_context():
        assert current_value(org_id, "employee", as_of=as_of) == total


def test_parallel_callers_on_different_months_stay_independent(file_app):
    org_id = file_app.config["TEST_ORG_ID"]
    months = [date(2024, m, 1) for m in (1, 2, 3)]

    with ThreadPoolExecutor(max_workers=len(months)) as pool:
        futures = {m: pool.submit(_issue_many, file_app, org_id, "payroll", m) for m in months}
        results = {m: f.result() for m, f in futures.items()}

    for m, ids in results.items():
        assert ids[0] == f"ACM-PAY-{m:%Y%m}-0001"
        assert ids[-1] == f"ACM-PAY-{m:%Y%m}-{PER_WORKER:04d}"
