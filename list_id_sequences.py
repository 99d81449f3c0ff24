from complihr_api import create_app
from complihr_api.models.id_sequence import IdSequence
from complihr_api.models.master import Organization

app = create_app()

with app.app_context():
    rows = (
        IdSequence.query.join(Organization, Organization.id == IdSequence.organization_id)
        .add_columns(Organization.code)
        .order_by(Organization.code, IdSequence.sequence_type, IdSequence.year, IdSequence.month)
        .all()
    )
    print(f"Found {len(rows)} id sequences:")
    for seq, org_code in rows:
        period = f"{seq.year}-{seq.month:02d}" if seq.month else (str(seq.year) if seq.year else "-")
        print(f"Org: {org_code}, Type: {seq.sequence_type}, Period: {period}, Value: {seq.current_value}")
