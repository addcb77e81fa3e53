"""Models package - imports all models for the application"""
from ..extensions import db

# Import in dependency order for table creation
from .reference import Category, Product, Branch, RAW_TRACKED
from .batch_type import BatchType, CategoryBatchType
from .inventory_instance import (
    InventoryInstance,
    INSTANCE_STATUSES,
    STATUS_DEPLETED,
    STATUS_IN_STOCK,
    STATUS_SCRAPPED,
)
from .inventory_audit import InventoryAuditEntry

__all__ = [
    'db',
    'Category',
    'Product',
    'Branch',
    'RAW_TRACKED',
    'BatchType',
    'CategoryBatchType',
    'InventoryInstance',
    'InventoryAuditEntry',
    'INSTANCE_STATUSES',
    'STATUS_IN_STOCK',
    'STATUS_DEPLETED',
    'STATUS_SCRAPPED',
]
