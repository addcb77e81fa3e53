"""
Reference registries consulted by the ledger.

Products, branches and categories are owned by other parts of the back
office. The ledger only reads them for existence checks, code derivation and
category attribute requirements.
"""

from ..extensions import db
from .mixins import TimestampMixin

RAW_TRACKED = 'raw_tracked'


class Category(TimestampMixin, db.Model):
    __tablename__ = 'category'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    # List of {"name": ..., "required": bool} describing instance attributes
    attribute_schema = db.Column(db.JSON, nullable=True)

    def required_attributes(self):
        """Names of schema entries flagged as required."""
        schema = self.attribute_schema or []
        names = []
        for entry in schema:
            if isinstance(entry, dict) and entry.get('required') and entry.get('name'):
                names.append(entry['name'])
        return names

    def __repr__(self):
        return f'<Category {self.id}: {self.name}>'


class Product(TimestampMixin, db.Model):
    __tablename__ = 'product'

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(32), nullable=False, default=RAW_TRACKED)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)

    category = db.relationship('Category', backref='products')

    @property
    def is_raw_tracked(self):
        return self.type == RAW_TRACKED

    def __repr__(self):
        return f'<Product {self.id}: {self.sku}>'


class Branch(TimestampMixin, db.Model):
    __tablename__ = 'branch'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True)

    def __repr__(self):
        return f'<Branch {self.id}: {self.name}>'
