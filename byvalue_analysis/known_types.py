"""
byvalue_analysis/known_types.py
═══════════════════════════════

Static facts about fundamental and standard-library types.

Fundamental arithmetic types and the smart-pointer handles are trivially
relocatable and safe to hold by value.  Owning standard containers are not:
``std::string`` may point into its own small-buffer storage, and the node
based containers hold pointers back into themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from byvalue_analysis.errors import ErrorCategory
from byvalue_analysis.safety_store import SafetyRecord, Verdict
from byvalue_analysis.type_names import TypeIdentifier


@dataclass(frozen=True)
class KnownType:
    identifier: TypeIdentifier
    by_value_safe: bool
    description: str = ""


def _known(qualified: str, by_value_safe: bool, description: str = "") -> KnownType:
    return KnownType(TypeIdentifier.parse(qualified), by_value_safe, description)


KNOWN_TYPES: Tuple[KnownType, ...] = (
    # ── Fundamental types ────────────────────────────────────────────
    _known("bool", True),
    _known("char", True),
    _known("signed char", True),
    _known("unsigned char", True),
    _known("wchar_t", True),
    _known("char16_t", True),
    _known("char32_t", True),
    _known("short", True),
    _known("unsigned short", True),
    _known("int", True),
    _known("unsigned int", True),
    _known("long", True),
    _known("unsigned long", True),
    _known("long long", True),
    _known("unsigned long long", True),
    _known("float", True),
    _known("double", True),
    # ── <cstdint> / <cstddef> ────────────────────────────────────────
    _known("int8_t", True),
    _known("uint8_t", True),
    _known("int16_t", True),
    _known("uint16_t", True),
    _known("int32_t", True),
    _known("uint32_t", True),
    _known("int64_t", True),
    _known("uint64_t", True),
    _known("size_t", True),
    _known("ptrdiff_t", True),
    # ── Standard library ─────────────────────────────────────────────
    _known("std::unique_ptr", True, "single owning pointer"),
    _known("std::shared_ptr", True, "reference-counted pointer"),
    _known("std::weak_ptr", True, "non-owning reference-counted pointer"),
    _known("std::string", False, "may point into its own inline buffer"),
    _known("std::vector", False, "owning container"),
    _known("std::map", False, "node-based owning container"),
    _known("std::function", False, "type-erased callable with inline storage"),
)


def is_known_type(type_id: TypeIdentifier) -> bool:
    return any(kt.identifier == type_id for kt in KNOWN_TYPES)


def seed() -> Dict[TypeIdentifier, SafetyRecord]:
    """Initial store entries: one terminal record per known type."""
    records: Dict[TypeIdentifier, SafetyRecord] = {}
    for kt in KNOWN_TYPES:
        if kt.by_value_safe:
            verdict = Verdict.confirmed()
        else:
            verdict = Verdict.unsafe(
                ErrorCategory.KNOWN_UNSAFE,
                f"type {kt.identifier} is not safe for by-value use",
            )
        records[kt.identifier] = SafetyRecord(verdict)
    return records
