from ..extensions import db
from .mixins import TimestampMixin


class BatchType(TimestampMixin, db.Model):
    """
    A kind of stock unit (Loose, Coil, Sheet).

    Convertible types name the type their material is slit into through
    ``converts_to_id``.
    """
    __tablename__ = 'batch_type'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_convertible = db.Column(db.Boolean, nullable=False, default=False)
    converts_to_id = db.Column(db.Integer, db.ForeignKey('batch_type.id'), nullable=True)

    converts_to = db.relationship('BatchType', remote_side=[id])

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'is_convertible': self.is_convertible,
            'converts_to_id': self.converts_to_id,
        }

    def __repr__(self):
        return f'<BatchType {self.id}: {self.name}>'


class CategoryBatchType(db.Model):
    __tablename__ = 'category_batch_type'

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    batch_type_id = db.Column(db.Integer, db.ForeignKey('batch_type.id'), nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    category = db.relationship('Category', backref='batch_type_assignments')
    batch_type = db.relationship('BatchType', backref='category_assignments')

    __table_args__ = (
        db.UniqueConstraint('category_id', 'batch_type_id', name='uq_category_batch_type'),
    )
