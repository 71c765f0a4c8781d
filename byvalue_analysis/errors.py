# byvalue_analysis/errors.py
"""
Error types for the by-value safety analysis.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  ByValueError (base)                                                        │
│  ├── UnsafeByValueError        - a requested type cannot be by-value        │
│  │   ├── DeclarationMissingError                                            │
│  │   ├── DependentTypeUnsafeError (carries the nested causal chain)         │
│  │   ├── VirtualDispatchError                                               │
│  │   ├── BlocklistedError                                                   │
│  │   ├── ComplexAliasError                                                  │
│  │   ├── KnownUnsafeTypeError                                               │
│  │   └── AliasCycleError                                                    │
│  ├── InputError                - malformed input from a collaborator        │
│  │   ├── InvalidTypeNameError                                               │
│  │   ├── CatalogFormatError                                                 │
│  │   ├── UnsupportedDeclarationError                                        │
│  │   └── ConfigError                                                        │
│  └── InternalError             - store invariant violated (a bug)           │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a code of the form BYV-NNNN:
  - 1000-1999: analysis verdicts (raised by ``confirm``)
  - 2000-2999: input errors
  - 9000-9999: internal errors

Ingestion never raises for an analysis problem.  It records an ``Unsafe``
verdict whose reason names one of the categories below, and ``confirm``
turns that reason back into the matching exception class with
:func:`error_for_reason`.
"""

from __future__ import annotations

from enum import Enum, auto, unique
from typing import TYPE_CHECKING, ClassVar, Dict, Optional, Sequence, Type

if TYPE_CHECKING:
    from byvalue_analysis.safety_store import UnsafeReason
    from byvalue_analysis.type_names import TypeIdentifier


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorCategory(Enum):
    """Why a type was rejected, or what kind of input was malformed."""

    # Analysis verdicts
    DECLARATION_MISSING = auto()
    DEPENDENT_TYPE_UNSAFE = auto()
    HAS_VIRTUAL_DISPATCH = auto()
    BLOCKLISTED = auto()
    COMPLEX_OR_OPAQUE_ALIAS = auto()
    KNOWN_UNSAFE = auto()
    ALIAS_CYCLE = auto()

    # Input
    INVALID_TYPE_NAME = auto()
    CATALOG_FORMAT = auto()
    UNSUPPORTED_DECLARATION = auto()
    CONFIG = auto()

    # Internal
    INTERNAL = auto()


class ErrorCode:
    """
    Structured error code, ``BYV-NNNN``.

    Compares equal to another ``ErrorCode`` with the same number, or to its
    string form.
    """

    __slots__ = ("number", "category")

    PREFIX: ClassVar[str] = "BYV"

    def __init__(self, number: int, category: ErrorCategory) -> None:
        self.number = number
        self.category = category

    @property
    def code(self) -> str:
        return f"{self.PREFIX}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash(self.number)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    DECLARATION_MISSING = ErrorCode(1001, ErrorCategory.DECLARATION_MISSING)
    DEPENDENT_TYPE_UNSAFE = ErrorCode(1002, ErrorCategory.DEPENDENT_TYPE_UNSAFE)
    HAS_VIRTUAL_DISPATCH = ErrorCode(1003, ErrorCategory.HAS_VIRTUAL_DISPATCH)
    BLOCKLISTED = ErrorCode(1004, ErrorCategory.BLOCKLISTED)
    COMPLEX_OR_OPAQUE_ALIAS = ErrorCode(1005, ErrorCategory.COMPLEX_OR_OPAQUE_ALIAS)
    KNOWN_UNSAFE = ErrorCode(1006, ErrorCategory.KNOWN_UNSAFE)
    ALIAS_CYCLE = ErrorCode(1007, ErrorCategory.ALIAS_CYCLE)

    INVALID_TYPE_NAME = ErrorCode(2001, ErrorCategory.INVALID_TYPE_NAME)
    CATALOG_FORMAT = ErrorCode(2002, ErrorCategory.CATALOG_FORMAT)
    UNSUPPORTED_DECLARATION = ErrorCode(2003, ErrorCategory.UNSUPPORTED_DECLARATION)
    CONFIG = ErrorCode(2004, ErrorCategory.CONFIG)

    INTERNAL = ErrorCode(9001, ErrorCategory.INTERNAL)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class ByValueError(Exception):
    """
    Base exception for all by-value analysis errors.

    ``str(err)`` is the plain message, so a causal chain reads exactly as
    it was recorded in the store.
    """

    code: ClassVar[ErrorCode] = ErrorCodes.INTERNAL

    def __init__(
        self,
        message: str,
        type_name: Optional[TypeIdentifier] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type_name = type_name

    @property
    def category(self) -> ErrorCategory:
        return self.code.category

    def __str__(self) -> str:
        return self.message


# ───────────────────────────────────────────────────────────────────────────────
# ANALYSIS VERDICTS
# ───────────────────────────────────────────────────────────────────────────────

class UnsafeByValueError(ByValueError):
    """A requested type could not be confirmed as safe to use by value."""


class DeclarationMissingError(UnsafeByValueError):
    """A requested or dependent type was never declared."""

    code = ErrorCodes.DECLARATION_MISSING


class DependentTypeUnsafeError(UnsafeByValueError):
    """A field type (transitively) is not safe to be by-value."""

    code = ErrorCodes.DEPENDENT_TYPE_UNSAFE


class VirtualDispatchError(UnsafeByValueError):
    """The type carries a virtual dispatch table."""

    code = ErrorCodes.HAS_VIRTUAL_DISPATCH


class BlocklistedError(UnsafeByValueError):
    """The type is on the user's blocklist."""

    code = ErrorCodes.BLOCKLISTED


class ComplexAliasError(UnsafeByValueError):
    """The type is a typedef to something opaque or not representable."""

    code = ErrorCodes.COMPLEX_OR_OPAQUE_ALIAS


class KnownUnsafeTypeError(UnsafeByValueError):
    """The type is a standard type known to be unsafe by value."""

    code = ErrorCodes.KNOWN_UNSAFE


class AliasCycleError(UnsafeByValueError):
    """A chain of typedefs loops back on itself."""

    code = ErrorCodes.ALIAS_CYCLE

    def __init__(self, cycle: Sequence[TypeIdentifier]) -> None:
        cycle_str = " -> ".join(str(t) for t in cycle)
        super().__init__(
            f"type {cycle[0]} is part of a typedef cycle: {cycle_str}",
            type_name=cycle[0],
        )
        self.cycle = list(cycle)


# ───────────────────────────────────────────────────────────────────────────────
# INPUT ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class InputError(ByValueError):
    """Malformed input handed to the analysis by a collaborator."""


class InvalidTypeNameError(InputError):
    code = ErrorCodes.INVALID_TYPE_NAME


class CatalogFormatError(InputError):
    code = ErrorCodes.CATALOG_FORMAT


class UnsupportedDeclarationError(InputError):
    code = ErrorCodes.UNSUPPORTED_DECLARATION


class ConfigError(InputError):
    code = ErrorCodes.CONFIG


class InternalError(ByValueError):
    """A store invariant was violated.  Always a bug."""

    code = ErrorCodes.INTERNAL


# ═══════════════════════════════════════════════════════════════════════════════
# REASON → EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════

_CATEGORY_ERRORS: Dict[ErrorCategory, Type[UnsafeByValueError]] = {
    ErrorCategory.DECLARATION_MISSING: DeclarationMissingError,
    ErrorCategory.DEPENDENT_TYPE_UNSAFE: DependentTypeUnsafeError,
    ErrorCategory.HAS_VIRTUAL_DISPATCH: VirtualDispatchError,
    ErrorCategory.BLOCKLISTED: BlocklistedError,
    ErrorCategory.COMPLEX_OR_OPAQUE_ALIAS: ComplexAliasError,
    ErrorCategory.KNOWN_UNSAFE: KnownUnsafeTypeError,
}


def error_for_reason(
    reason: UnsafeReason,
    type_name: Optional[TypeIdentifier] = None,
) -> UnsafeByValueError:
    """Build the exception matching an ``Unsafe`` verdict's reason.

    The message is the recorded reason, verbatim.
    """
    try:
        cls = _CATEGORY_ERRORS[reason.category]
    except KeyError:
        raise InternalError(
            f"unsafe reason has non-verdict category {reason.category.name}: "
            f"{reason.message}",
            type_name=type_name,
        ) from None
    return cls(reason.message, type_name=type_name)
