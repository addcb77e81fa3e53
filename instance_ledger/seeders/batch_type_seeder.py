from ..extensions import db
from ..models import BatchType

BATCH_TYPES = [
    {"name": "Coil", "description": "Wound coil slit from loose stock", "is_convertible": False},
    {"name": "Sheet", "description": "Flat cut sheets", "is_convertible": False},
    {"name": "Loose", "description": "Loose material awaiting slitting", "is_convertible": True, "converts_to": "Coil"},
]


def seed_batch_types():
    """Idempotently create the standard batch types. Returns the number created."""
    created = 0
    by_name = {}

    for entry in BATCH_TYPES:
        batch_type = BatchType.query.filter_by(name=entry["name"]).first()
        if batch_type is None:
            batch_type = BatchType(
                name=entry["name"],
                description=entry["description"],
                is_active=True,
                is_convertible=entry["is_convertible"],
            )
            db.session.add(batch_type)
            created += 1
        by_name[entry["name"]] = batch_type

    db.session.flush()

    for entry in BATCH_TYPES:
        target_name = entry.get("converts_to")
        if target_name and by_name[entry["name"]].converts_to_id is None:
            by_name[entry["name"]].converts_to_id = by_name[target_name].id

    db.session.commit()
    return created
