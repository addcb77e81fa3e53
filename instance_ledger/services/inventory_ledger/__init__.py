"""
Inventory Ledger Service - Canonical Entry Point

All changes to inventory instances (registration, adjustment, transfer,
conversion and scrap) go through the functions exported here. Nothing else
writes ``remaining_quantity``.
"""

from ..ledger_errors import (
    ConcurrentUpdateError,
    ConservationError,
    DuplicateCodeError,
    InstanceScrappedError,
    InsufficientQuantityError,
    InvalidQuantityError,
    LedgerError,
    NotFoundError,
    UnsupportedConversionError,
    ValidationError,
)
from ._adjustment import adjust_instance
from ._conversion import ConversionResult, convert_instance, convert_instances
from ._queries import (
    available_instances,
    get_instance,
    instance_history,
    list_audit_entries,
    list_instances,
    suggest_code,
)
from ._registration import register_instance, register_instances
from ._scrap import scrap_instance
from ._store import InstanceState, InstanceStore, InstanceUpdate, derive_status
from ._submission import SubmissionReport, SubmissionResult
from ._transfer import transfer_instance
from ._validation import scan_ledger_invariants, validate_instance_invariants

__all__ = [
    'register_instance',
    'register_instances',
    'adjust_instance',
    'transfer_instance',
    'convert_instance',
    'convert_instances',
    'scrap_instance',
    'get_instance',
    'list_instances',
    'available_instances',
    'instance_history',
    'list_audit_entries',
    'suggest_code',
    'validate_instance_invariants',
    'scan_ledger_invariants',
    'InstanceStore',
    'InstanceState',
    'InstanceUpdate',
    'derive_status',
    'ConversionResult',
    'SubmissionReport',
    'SubmissionResult',
    'LedgerError',
    'ValidationError',
    'InvalidQuantityError',
    'InsufficientQuantityError',
    'DuplicateCodeError',
    'UnsupportedConversionError',
    'InstanceScrappedError',
    'NotFoundError',
    'ConcurrentUpdateError',
    'ConservationError',
]
