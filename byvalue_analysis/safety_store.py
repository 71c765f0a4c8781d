"""
byvalue_analysis/safety_store.py
════════════════════════════════

The mutable record of one analysis run: a map from ``TypeIdentifier`` to
its current verdict and the field types that must be confirmed with it.

Verdicts
────────
We model a verdict as a small tagged value:

    SafeCandidate      fields/shape look acceptable, not yet required
    Confirmed          proven by-value safe            (terminal)
    Unsafe(reason)     proven unsafe, with causal chain (terminal)
    AliasOf(target)    defers to another identifier's verdict

Records reference each other only through identifiers, so forward and
cyclic references never need object links; every lookup goes through the
store.

Invariants
──────────
* At most one record per identifier.  ``put`` overwrites without merging;
  that is how a later declaration replaces an earlier one.
* Once a record is ``Confirmed`` or ``Unsafe`` its verdict never changes
  through ``set_verdict``.  Only ingestion (``put``) may replace it.
* An identifier absent from the store is never reported as safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from byvalue_analysis.errors import ErrorCategory, InternalError
from byvalue_analysis.type_names import TypeIdentifier


class VerdictKind(Enum):
    """Discriminant for :class:`Verdict`."""
    SAFE_CANDIDATE = auto()
    CONFIRMED = auto()
    UNSAFE = auto()
    ALIAS_OF = auto()


@dataclass(frozen=True)
class UnsafeReason:
    """Why a type is unsafe: an error category plus the causal message."""

    category: ErrorCategory
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Verdict:
    """
    Safety classification of one type.

    Kind-specific payload:
      - UNSAFE:   ``reason``
      - ALIAS_OF: ``target``
    """

    kind: VerdictKind
    reason: Optional[UnsafeReason] = None
    target: Optional[TypeIdentifier] = None

    # ── Factory methods ──────────────────────────────────────────────

    @classmethod
    def safe_candidate(cls) -> Verdict:
        return cls(kind=VerdictKind.SAFE_CANDIDATE)

    @classmethod
    def confirmed(cls) -> Verdict:
        return cls(kind=VerdictKind.CONFIRMED)

    @classmethod
    def unsafe(cls, category: ErrorCategory, message: str) -> Verdict:
        return cls(kind=VerdictKind.UNSAFE, reason=UnsafeReason(category, message))

    @classmethod
    def alias_of(cls, target: TypeIdentifier) -> Verdict:
        return cls(kind=VerdictKind.ALIAS_OF, target=target)

    # ── Predicates ───────────────────────────────────────────────────

    @property
    def is_confirmed(self) -> bool:
        return self.kind is VerdictKind.CONFIRMED

    @property
    def is_unsafe(self) -> bool:
        return self.kind is VerdictKind.UNSAFE

    @property
    def is_terminal(self) -> bool:
        return self.kind in (VerdictKind.CONFIRMED, VerdictKind.UNSAFE)

    def __str__(self) -> str:
        if self.kind is VerdictKind.UNSAFE:
            return f"unsafe: {self.reason}"
        if self.kind is VerdictKind.ALIAS_OF:
            return f"alias of {self.target}"
        if self.kind is VerdictKind.CONFIRMED:
            return "confirmed"
        return "safe candidate"


@dataclass
class SafetyRecord:
    """Current verdict of a type plus the field types confirmed with it."""

    verdict: Verdict
    dependencies: List[TypeIdentifier] = field(default_factory=list)


class SafetyStore:
    """Arena of :class:`SafetyRecord` keyed by :class:`TypeIdentifier`.

    Owned by exactly one analysis run.
    """

    def __init__(
        self,
        records: Optional[Mapping[TypeIdentifier, SafetyRecord]] = None,
    ) -> None:
        self._records: Dict[TypeIdentifier, SafetyRecord] = dict(records or {})

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TypeIdentifier]:
        return iter(self._records)

    def get(self, type_id: TypeIdentifier) -> Optional[SafetyRecord]:
        return self._records.get(type_id)

    def items(self) -> Iterator[Tuple[TypeIdentifier, SafetyRecord]]:
        return iter(self._records.items())

    def put(self, type_id: TypeIdentifier, record: SafetyRecord) -> None:
        """Insert or overwrite the record for *type_id* (no merge)."""
        self._records[type_id] = record

    def set_verdict(self, type_id: TypeIdentifier, verdict: Verdict) -> None:
        """Mutate an existing record's verdict in place.

        Raises ``InternalError`` if the record is missing or already
        terminal with a different verdict.
        """
        record = self._records.get(type_id)
        if record is None:
            raise InternalError(
                f"no record for {type_id} to update", type_name=type_id
            )
        if record.verdict.is_terminal and record.verdict != verdict:
            raise InternalError(
                f"verdict for {type_id} is terminal ({record.verdict}) "
                f"and cannot become {verdict}",
                type_name=type_id,
            )
        record.verdict = verdict

    def verdict_of(self, type_id: TypeIdentifier) -> Optional[Verdict]:
        record = self._records.get(type_id)
        return record.verdict if record is not None else None

    def is_confirmed_safe(self, type_id: TypeIdentifier) -> bool:
        """True iff *type_id* has a record whose verdict is exactly Confirmed.

        Absent, unconfirmed candidates, unsafe types and unresolved aliases
        all answer False.
        """
        record = self._records.get(type_id)
        return record is not None and record.verdict.is_confirmed
