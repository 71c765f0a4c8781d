"""
byvalue_analysis/ingestion.py
═════════════════════════════

Turns declaration records into initial store entries.

Each struct is judged against the store *as it is when the struct is
ingested*.  A field type declared later in the same catalog is unknown at
that point, so the struct is recorded unsafe for good.  Callers must hand
declarations over bottom-up (field types before the structs using them).

Blocklist entries are applied before anything else.  A struct, enum,
alias or opaque declaration with the same identifier ingested afterwards
overwrites the blocklist verdict.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from byvalue_analysis.declarations import (
    AliasDecl,
    BlocklistEntry,
    Declaration,
    EnumDecl,
    OpaqueDecl,
    StructDecl,
)
from byvalue_analysis.errors import ErrorCategory, UnsupportedDeclarationError
from byvalue_analysis.safety_store import SafetyRecord, SafetyStore, Verdict, VerdictKind
from byvalue_analysis.type_names import TypeIdentifier

logger = logging.getLogger(__name__)


def ingest(store: SafetyStore, declarations: Iterable[Declaration]) -> None:
    """Record a verdict for every declaration, in order.  Never fails on
    analysis grounds; problems become ``Unsafe`` verdicts."""
    decls: List[Declaration] = list(declarations)

    for decl in decls:
        if isinstance(decl, BlocklistEntry):
            ingest_blocklisted(store, decl.name)

    for decl in decls:
        if isinstance(decl, BlocklistEntry):
            continue
        if isinstance(decl, StructDecl):
            ingest_struct(store, decl)
        elif isinstance(decl, EnumDecl):
            store.put(decl.name, SafetyRecord(Verdict.confirmed()))
        elif isinstance(decl, AliasDecl):
            ingest_alias(store, decl)
        elif isinstance(decl, OpaqueDecl):
            ingest_complex_type(store, decl.name)
        else:
            raise UnsupportedDeclarationError(
                f"cannot ingest {type(decl).__name__}: {decl!r}"
            )

    logger.info("Ingested %d declaration(s); store holds %d type(s)",
                len(decls), len(store))


def ingest_blocklisted(store: SafetyStore, type_id: TypeIdentifier) -> None:
    store.put(
        type_id,
        SafetyRecord(Verdict.unsafe(
            ErrorCategory.BLOCKLISTED,
            f"type {type_id} is on the blocklist",
        )),
    )


def ingest_struct(store: SafetyStore, decl: StructDecl) -> None:
    """Work out whether *decl* could be safe by value, given what the store
    knows right now."""
    name = decl.name
    verdict = Verdict.safe_candidate()
    for field_type in decl.fields:
        record = store.get(field_type)
        if record is None:
            verdict = Verdict.unsafe(
                ErrorCategory.DECLARATION_MISSING,
                f"type {name} could not be by-value because its dependent "
                f"type {field_type} isn't known",
            )
            break
        if record.verdict.kind is VerdictKind.UNSAFE:
            verdict = Verdict.unsafe(
                ErrorCategory.DEPENDENT_TYPE_UNSAFE,
                f"type {name} could not be by-value because its dependent "
                f"type {field_type} isn't safe to be by-value. "
                f"Because: {record.verdict.reason}",
            )
            break

    if decl.has_virtual_dispatch:
        verdict = Verdict.unsafe(
            ErrorCategory.HAS_VIRTUAL_DISPATCH,
            f"type {name} could not be by-value because it has virtual functions",
        )

    logger.debug("struct %s: %s", name, verdict)
    store.put(name, SafetyRecord(verdict, list(decl.fields)))


def ingest_alias(store: SafetyStore, decl: AliasDecl) -> None:
    if decl.target is None:
        ingest_complex_type(store, decl.name)
        return
    store.put(decl.name, SafetyRecord(Verdict.alias_of(decl.target)))


def ingest_complex_type(store: SafetyStore, type_id: TypeIdentifier) -> None:
    store.put(
        type_id,
        SafetyRecord(Verdict.unsafe(
            ErrorCategory.COMPLEX_OR_OPAQUE_ALIAS,
            f"type {type_id} is a typedef to a complex type",
        )),
    )
