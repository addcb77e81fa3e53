"""Instance and audit-event code generation.

Synopsis:
Derive human-meaningful instance codes (``{SKU}-{TYPE}-{SEQ}``), resolve
collisions with the suffix-increment rule, mint internal codes for ungrouped
instances and compact event codes for the audit trail.

Glossary:
- Suggestion: advisory next code for a product/branch/batch type triple.
- In-use set: committed codes plus codes already chosen in the same submission.
- Base36 suffix: Alphanumeric fragment derived from time and entropy.
"""

from __future__ import annotations

import re
import secrets
import time
from typing import Callable, Container, Dict

from ..models import InventoryInstance
from ..services.ledger_errors import DuplicateCodeError

__all__ = [
    "sanitize_for_code",
    "code_pattern",
    "suggest_instance_code",
    "next_sequence_code",
    "resolve_instance_code",
    "generate_untracked_code",
    "generate_inventory_event_code",
    "int_to_base36",
]

BASE36_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
UNTRACKED_PREFIX = "UNG"
DEFAULT_EVENT_PREFIX = "EVT"
MIN_SEQUENCE_WIDTH = 3

EVENT_PREFIXES: Dict[str, str] = {
    "register": "REG",
    "adjust": "ADJ",
    "transfer": "TRF",
    "convert_out": "CNV",
    "convert_in": "CNV",
    "scrap": "SCR",
}

_INVALID_CODE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_HYPHEN_RUNS = re.compile(r"-+")
_NUMERIC_SUFFIX = re.compile(r"^(.+-)(\d+)$")


# --- Sanitize code fragment ---
# Purpose: Make SKUs and type names safe for use inside instance codes.
# Inputs: Raw fragment.
# Outputs: Fragment with invalid characters replaced by single hyphens.
def sanitize_for_code(value: str | None) -> str:
    text = _INVALID_CODE_CHARS.sub("-", value or "")
    return _HYPHEN_RUNS.sub("-", text).strip("-")


def code_pattern(sku: str, batch_type_name: str) -> str:
    """Prefix shared by every suggested code for one SKU and batch type."""
    return f"{sanitize_for_code(sku)}-{sanitize_for_code(batch_type_name).upper()}-"


def next_sequence_code(pattern: str, existing_codes) -> str:
    """
    Return ``pattern`` followed by the highest numeric suffix among
    ``existing_codes`` plus one, zero padded to at least three digits.
    """
    max_sequence = 0
    for code in existing_codes:
        if not code or not code.startswith(pattern):
            continue
        suffix = code[len(pattern):]
        if suffix.isdigit():
            max_sequence = max(max_sequence, int(suffix))
    return f"{pattern}{max_sequence + 1:0{MIN_SEQUENCE_WIDTH}d}"


def suggest_instance_code(product, branch, batch_type) -> str:
    """
    Suggest the next instance code for a product/branch/batch type.

    Format: {SKU}-{BATCH_TYPE}-{SEQUENCE}
    - SKU and BATCH_TYPE sanitised, BATCH_TYPE uppercased
    - SEQUENCE: highest existing suffix for the same triple plus one

    Read-only and advisory; uniqueness is enforced when the instance is
    created.
    """
    pattern = code_pattern(product.sku, batch_type.name)
    rows = (
        InventoryInstance.query.with_entities(InventoryInstance.instance_code)
        .filter(
            InventoryInstance.product_id == product.id,
            InventoryInstance.branch_id == branch.id,
            InventoryInstance.batch_type_id == batch_type.id,
            InventoryInstance.instance_code.like(f"{pattern}%"),
        )
        .all()
    )
    return next_sequence_code(pattern, (row[0] for row in rows))


def resolve_instance_code(candidate: str, in_use: Container[str] | Callable[[str], bool]) -> str:
    """
    Return ``candidate`` if it is free, otherwise the next free code obtained
    by incrementing its numeric suffix.

    ``in_use`` is either a container of taken codes or a predicate. Padding
    keeps the candidate's width (never below three digits) and grows only
    when the number needs more digits. A taken candidate without a numeric
    suffix raises ``DuplicateCodeError``.
    """
    is_taken = in_use if callable(in_use) else in_use.__contains__
    if not is_taken(candidate):
        return candidate

    match = _NUMERIC_SUFFIX.match(candidate)
    if not match:
        raise DuplicateCodeError(
            candidate,
            f"Instance code '{candidate}' already exists; supply a different code",
        )

    prefix, digits = match.groups()
    width = max(len(digits), MIN_SEQUENCE_WIDTH)
    sequence = int(digits)
    while True:
        sequence += 1
        code = f"{prefix}{sequence:0{width}d}"
        if not is_taken(code):
            return code


# --- Integer to base36 ---
# Purpose: Encode non-negative integers using uppercase base36 characters.
def int_to_base36(num: int) -> str:
    if num == 0:
        return "0"

    digits = []
    while num:
        num, remainder = divmod(num, 36)
        digits.append(BASE36_CHARS[remainder])

    return "".join(reversed(digits))


def _generate_suffix() -> str:
    timestamp_component = int_to_base36(int(time.time() * 1000)).rjust(6, "0")[-5:]
    random_component = int_to_base36(secrets.randbelow(36**6)).rjust(6, "0")
    return f"{timestamp_component}{random_component}".upper()


def generate_untracked_code(product, batch_type=None) -> str:
    """Internal code for an ungrouped instance: ``UNG-{SKU}-{suffix}``."""
    sku = sanitize_for_code(product.sku) or str(product.id)
    return f"{UNTRACKED_PREFIX}-{sku}-{_generate_suffix()}"


def generate_inventory_event_code(event_type: str) -> str:
    """Audit event code, e.g. ``ADJ-M2Q1KX7F3A9B``."""
    normalized = (event_type or "").strip().lower()
    prefix = EVENT_PREFIXES.get(normalized, DEFAULT_EVENT_PREFIX)
    return f"{prefix}-{_generate_suffix()}"
