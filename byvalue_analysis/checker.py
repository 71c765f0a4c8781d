"""
byvalue_analysis/checker.py
═══════════════════════════

``ByValueChecker`` — one analysis run over one catalog.

Owns a single :class:`SafetyStore`, seeded from the known-type table, and
exposes the three phases in order: ingest the catalog, confirm the
requested types, then query.  Nothing is shared between checkers.

Usage::

    checker = ByValueChecker.from_catalog(declarations, config)
    if checker.is_confirmed_safe(TypeIdentifier.parse("geo::Point")):
        ...  # generate a by-value binding
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from byvalue_analysis.config import TypeConfig
from byvalue_analysis.declarations import BlocklistEntry, Declaration
from byvalue_analysis.ingestion import ingest
from byvalue_analysis.known_types import seed
from byvalue_analysis.resolver import confirm
from byvalue_analysis.safety_store import SafetyStore, Verdict
from byvalue_analysis.type_names import TypeIdentifier, TypeLike, as_type_identifier

logger = logging.getLogger(__name__)


class ByValueChecker:
    """Decides which declared types may be represented by value."""

    def __init__(self) -> None:
        self.store = SafetyStore(seed())

    @classmethod
    def from_catalog(
        cls,
        declarations: Iterable[Declaration],
        config: Optional[TypeConfig] = None,
    ) -> ByValueChecker:
        """Seed, ingest *declarations* plus the config blocklist, then
        confirm the config's by-value requests.

        Raises ``UnsafeByValueError`` if any request cannot be confirmed.
        """
        config = config or TypeConfig()
        checker = cls()
        checker.ingest_catalog(declarations, config)
        checker.confirm(config.by_value_requests())
        return checker

    # ── Phases ───────────────────────────────────────────────────────

    def ingest(self, declarations: Iterable[Declaration]) -> None:
        ingest(self.store, declarations)

    def ingest_catalog(
        self,
        declarations: Iterable[Declaration],
        config: TypeConfig,
    ) -> None:
        """Ingest *declarations* with the config blocklist applied first."""
        for warning in config.validate():
            logger.warning("config: %s", warning)
        blocked: List[Declaration] = [
            BlocklistEntry(t) for t in config.blocklisted_types()
        ]
        self.ingest(blocked + list(declarations))

    def confirm(self, requested: Iterable[TypeLike]) -> None:
        confirm(self.store, [as_type_identifier(t) for t in requested])

    # ── Queries ──────────────────────────────────────────────────────

    def is_confirmed_safe(self, type_id: TypeLike) -> bool:
        return self.store.is_confirmed_safe(as_type_identifier(type_id))

    def verdict_of(self, type_id: TypeLike) -> Optional[Verdict]:
        return self.store.verdict_of(as_type_identifier(type_id))

    def explain(self, type_id: TypeLike) -> Optional[str]:
        """The causal chain recorded for an unsafe type, else None."""
        verdict = self.verdict_of(type_id)
        if verdict is None or not verdict.is_unsafe:
            return None
        return verdict.reason.message

    def report(self) -> List[Tuple[TypeIdentifier, Verdict]]:
        return sorted(
            ((type_id, record.verdict) for type_id, record in self.store.items()),
            key=lambda pair: pair[0],
        )
