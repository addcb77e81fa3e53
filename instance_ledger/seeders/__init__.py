"""
Seeders package for the inventory ledger.
Contains catalog seeding functionality.
"""

from .batch_type_seeder import seed_batch_types

__all__ = ['seed_batch_types']
