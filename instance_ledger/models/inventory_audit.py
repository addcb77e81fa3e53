from ..extensions import db
from ..utils.quantities import format_quantity
from ..utils.timezone_utils import TimezoneUtils


class InventoryAuditEntry(db.Model):
    """Append-only history row written alongside every ledger mutation."""
    __tablename__ = 'inventory_audit_entry'

    id = db.Column(db.Integer, primary_key=True)
    event_code = db.Column(db.String(32), nullable=False, unique=True)
    event_type = db.Column(db.String(32), nullable=False)

    instance_id = db.Column(db.String(36), db.ForeignKey('inventory_instance.id'), nullable=False, index=True)
    related_instance_id = db.Column(db.String(36), db.ForeignKey('inventory_instance.id'), nullable=True)

    old_quantity = db.Column(db.Numeric(15, 3), nullable=True)
    new_quantity = db.Column(db.Numeric(15, 3), nullable=True)
    quantity_change = db.Column(db.Numeric(15, 3), nullable=False, default=0)

    from_branch_id = db.Column(db.Integer, db.ForeignKey('branch.id'), nullable=True)
    to_branch_id = db.Column(db.Integer, db.ForeignKey('branch.id'), nullable=True)

    reason = db.Column(db.Text, nullable=True)
    actor = db.Column(db.String(128), nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False, index=True)

    instance = db.relationship('InventoryInstance', foreign_keys=[instance_id], backref='audit_entries')

    def __repr__(self):
        return f'<InventoryAuditEntry {self.event_code} {self.event_type}>'

    def to_dict(self):
        return {
            'id': self.id,
            'event_code': self.event_code,
            'event_type': self.event_type,
            'instance_id': self.instance_id,
            'related_instance_id': self.related_instance_id,
            'old_quantity': format_quantity(self.old_quantity),
            'new_quantity': format_quantity(self.new_quantity),
            'quantity_change': format_quantity(self.quantity_change),
            'from_branch_id': self.from_branch_id,
            'to_branch_id': self.to_branch_id,
            'reason': self.reason,
            'actor': self.actor,
            'timestamp': TimezoneUtils.format_datetime_for_api(self.timestamp),
        }
