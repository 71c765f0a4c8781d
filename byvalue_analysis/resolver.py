"""
byvalue_analysis/resolver.py
════════════════════════════

Confirms requested types as safe by value, transitively.

Algorithm
─────────
A worklist seeded with the requested identifiers, popped as a **stack**:
the last requested identifier is examined first, and a struct's field
types are examined before anything pushed earlier.  The pop order decides
which error surfaces when several requested types are unsafe, so it is
part of the contract.

    missing          → DeclarationMissingError
    Unsafe(reason)   → the error class for reason.category, message verbatim
    Confirmed        → nothing
    SafeCandidate    → Confirmed; push every dependency
    AliasOf(target)  → see below

Aliases resolve through the store without recursion.  If the target is
not terminal yet, the alias is pushed back with the target on top of it so
the target settles first.  An alias that comes back a second time with its
target still unsettled sits on a typedef cycle.  Once the target is
terminal its verdict is copied (a snapshot) onto the alias, and an unsafe
copy fails the batch like any other unsafe type.

The first failure aborts the whole batch.  Records already confirmed by
then stay confirmed.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from byvalue_analysis.errors import (
    AliasCycleError,
    DeclarationMissingError,
    error_for_reason,
)
from byvalue_analysis.safety_store import SafetyStore, Verdict, VerdictKind
from byvalue_analysis.type_names import TypeIdentifier

logger = logging.getLogger(__name__)


def _never_declared(type_id: TypeIdentifier) -> DeclarationMissingError:
    return DeclarationMissingError(
        f"Unable to confirm {type_id} because we never saw a declaration",
        type_name=type_id,
    )


def alias_chain(store: SafetyStore, start: TypeIdentifier) -> List[TypeIdentifier]:
    """Follow ``AliasOf`` links from *start* until a non-alias or a repeat.

    The returned chain ends with the first repeated identifier when the
    links loop.
    """
    chain = [start]
    seen = {start}
    current = start
    while True:
        verdict = store.verdict_of(current)
        if verdict is None or verdict.kind is not VerdictKind.ALIAS_OF:
            return chain
        current = verdict.target
        chain.append(current)
        if current in seen:
            return chain
        seen.add(current)


def confirm(store: SafetyStore, requested: Iterable[TypeIdentifier]) -> None:
    """Prove every identifier in *requested* (and all it contains) safe by
    value, mutating *store* in place.

    Raises an ``UnsafeByValueError`` subclass at the first problem found.
    """
    worklist: List[TypeIdentifier] = list(requested)
    deferred_aliases: Set[TypeIdentifier] = set()
    confirmed = 0

    while worklist:
        type_id = worklist.pop()
        record = store.get(type_id)
        if record is None:
            raise _never_declared(type_id)

        verdict = record.verdict
        if verdict.kind is VerdictKind.UNSAFE:
            raise error_for_reason(verdict.reason, type_id)

        if verdict.kind is VerdictKind.CONFIRMED:
            continue

        if verdict.kind is VerdictKind.SAFE_CANDIDATE:
            store.set_verdict(type_id, Verdict.confirmed())
            worklist.extend(record.dependencies)
            confirmed += 1
            logger.debug("confirmed %s; pushing %d dependency(ies)",
                         type_id, len(record.dependencies))
            continue

        # ALIAS_OF
        target = verdict.target
        target_record = store.get(target)
        if target_record is None:
            raise _never_declared(target)

        if not target_record.verdict.is_terminal:
            if type_id in deferred_aliases:
                raise AliasCycleError(alias_chain(store, type_id))
            deferred_aliases.add(type_id)
            worklist.append(type_id)
            worklist.append(target)
            logger.debug("alias %s waits for %s", type_id, target)
            continue

        store.set_verdict(type_id, target_record.verdict)
        logger.debug("alias %s takes verdict of %s: %s",
                     type_id, target, target_record.verdict)
        if target_record.verdict.is_unsafe:
            raise error_for_reason(target_record.verdict.reason, type_id)

    logger.info("Confirmation batch succeeded; %d type(s) newly confirmed",
                confirmed)
