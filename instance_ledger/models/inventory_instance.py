import uuid

from ..extensions import db
from ..utils.quantities import format_quantity
from ..utils.timezone_utils import TimezoneUtils
from .mixins import TimestampMixin

STATUS_IN_STOCK = 'in_stock'
STATUS_DEPLETED = 'depleted'
STATUS_SCRAPPED = 'scrapped'
INSTANCE_STATUSES = (STATUS_IN_STOCK, STATUS_DEPLETED, STATUS_SCRAPPED)


def _new_instance_id():
    return str(uuid.uuid4())


class InventoryInstance(TimestampMixin, db.Model):
    """
    A discrete, uniquely coded stock unit (a coil, a pallet, a bundle).

    Quantities are only changed through the inventory ledger service; the
    version counter guards every write against lost updates.
    """
    __tablename__ = 'inventory_instance'

    id = db.Column(db.String(36), primary_key=True, default=_new_instance_id)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey('branch.id'), nullable=False, index=True)
    batch_type_id = db.Column(db.Integer, db.ForeignKey('batch_type.id'), nullable=False)

    instance_code = db.Column(db.String(100), nullable=False)
    grouped = db.Column(db.Boolean, nullable=False, default=True)

    initial_quantity = db.Column(db.Numeric(15, 3), nullable=False)
    remaining_quantity = db.Column(db.Numeric(15, 3), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_IN_STOCK)

    attribute_data = db.Column(db.JSON, nullable=True)

    # Set when this instance was produced by converting another one
    source_instance_id = db.Column(db.String(36), db.ForeignKey('inventory_instance.id'), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship('Product')
    branch = db.relationship('Branch')
    batch_type = db.relationship('BatchType')
    source_instance = db.relationship('InventoryInstance', remote_side=[id], backref='derived_instances')

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        db.UniqueConstraint('instance_code', name='uq_inventory_instance_code'),
        db.CheckConstraint('initial_quantity >= 0', name='check_instance_initial_non_negative'),
        db.CheckConstraint('remaining_quantity >= 0', name='check_instance_remaining_non_negative'),
        db.CheckConstraint('remaining_quantity <= initial_quantity', name='check_instance_remaining_not_exceeds_initial'),
        db.CheckConstraint(
            "status IN ('in_stock', 'depleted', 'scrapped')",
            name='check_instance_status_valid',
        ),
        db.Index('ix_inventory_instance_lookup', 'product_id', 'branch_id', 'batch_type_id'),
    )

    def __repr__(self):
        return f'<InventoryInstance {self.instance_code}: {self.remaining_quantity}/{self.initial_quantity}>'

    @property
    def is_scrapped(self):
        return self.status == STATUS_SCRAPPED

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'branch_id': self.branch_id,
            'batch_type_id': self.batch_type_id,
            'batch_type': self.batch_type.name if self.batch_type else None,
            'instance_code': self.instance_code,
            'grouped': self.grouped,
            'initial_quantity': format_quantity(self.initial_quantity),
            'remaining_quantity': format_quantity(self.remaining_quantity),
            'status': self.status,
            'attribute_data': self.attribute_data or {},
            'source_instance_id': self.source_instance_id,
            'version': self.version_id,
            'created_at': TimezoneUtils.format_datetime_for_api(self.created_at),
            'updated_at': TimezoneUtils.format_datetime_for_api(self.updated_at),
        }
