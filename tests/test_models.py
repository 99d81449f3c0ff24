import os

import pytest

from complihr_api import create_app
from complihr_api.extensions import db
from complihr_api.models.employee import Employee
from complihr_api.models.id_sequence import IdSequence
from complihr_api.models.master import Department, Organization
from complihr_api.models.organization_settings import OrganizationSettings


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app()
    with app.app_context():
        yield app


def test_create_app_registers_every_model_table(app):
    assert {
        "organizations", "organization_settings", "id_sequences", "departments", "employees",
    } <= set(db.metadata.tables)


@pytest.mark.parametrize("model, name", [
    (Organization, "uq_organizations_code"),
    (OrganizationSettings, "uq_organization_settings_org"),
    (Department, "uq_department_org_code"),
    (Department, "uq_department_org_name"),
    (Employee, "uq_employee_org_number"),
    (Employee, "uq_employees_email"),
    (IdSequence, "uq_id_sequences_scope"),
])
def test_unique_constraints_use_the_migration_names(model, name):
    assert name in {c.name for c in model.__table__.constraints}
