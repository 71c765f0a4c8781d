"""
byvalue_analysis — By-value Safety Analysis for Foreign Types
=============================================================

Given a catalog of declared foreign types (structs with typed fields,
enums, typedefs, opaque blobs), decide which of them may be represented by
value (copied, moved, embedded inline) in generated bindings, and explain
why the others may not.

Core modules
------------
type_names
    ``TypeIdentifier``: qualified type names, the key of every lookup.
known_types
    Static by-value facts for fundamental and standard-library types.
safety_store
    Verdicts, safety records and the per-run ``SafetyStore``.
declarations
    Declaration records and the JSON catalog loader.
ingestion
    Declaration records → initial verdicts (order-sensitive).
resolver
    LIFO worklist that confirms requested types transitively.
checker
    ``ByValueChecker`` façade owning one store for one run.
config
    ``TypeConfig``: blocklist and by-value requests.
errors
    Exception hierarchy and ``BYV-NNNN`` error codes.

Quick start
-----------
>>> from byvalue_analysis import ByValueChecker, StructDecl, TypeIdentifier
>>> point = TypeIdentifier.parse("geo::Point")
>>> checker = ByValueChecker()
>>> checker.ingest([StructDecl(point, (TypeIdentifier.parse("double"),) * 2)])
>>> checker.confirm([point])
>>> checker.is_confirmed_safe(point)
True
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_re-export)
# Listed leaves first; each module only imports modules above it.
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "ErrorCategory",
        "ErrorCode",
        "ByValueError",
        "UnsafeByValueError",
        "DeclarationMissingError",
        "DependentTypeUnsafeError",
        "VirtualDispatchError",
        "BlocklistedError",
        "ComplexAliasError",
        "KnownUnsafeTypeError",
        "AliasCycleError",
        "InputError",
        "InvalidTypeNameError",
        "CatalogFormatError",
        "UnsupportedDeclarationError",
        "ConfigError",
        "InternalError",
    ],
    "type_names": [
        "TypeIdentifier",
        "as_type_identifier",
    ],
    "safety_store": [
        "VerdictKind",
        "Verdict",
        "UnsafeReason",
        "SafetyRecord",
        "SafetyStore",
    ],
    "known_types": [
        "KnownType",
        "KNOWN_TYPES",
        "is_known_type",
        "seed",
    ],
    "declarations": [
        "StructDecl",
        "EnumDecl",
        "AliasDecl",
        "OpaqueDecl",
        "BlocklistEntry",
        "load_catalog",
        "load_catalog_file",
    ],
    "ingestion": [
        "ingest",
    ],
    "resolver": [
        "confirm",
    ],
    "config": [
        "TypeConfig",
    ],
    "checker": [
        "ByValueChecker",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"byvalue_analysis: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(
                f"byvalue_analysis.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, obj)
        __all__.append(name)

    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

_log.debug("byvalue_analysis %s loaded %d names", __version__, len(__all__))

__all__ += ["__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block: static re-exports for IDEs and type checkers
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .checker import ByValueChecker as ByValueChecker
    from .config import TypeConfig as TypeConfig
    from .declarations import (
        AliasDecl as AliasDecl,
        BlocklistEntry as BlocklistEntry,
        EnumDecl as EnumDecl,
        OpaqueDecl as OpaqueDecl,
        StructDecl as StructDecl,
        load_catalog as load_catalog,
        load_catalog_file as load_catalog_file,
    )
    from .errors import (
        AliasCycleError as AliasCycleError,
        BlocklistedError as BlocklistedError,
        ByValueError as ByValueError,
        CatalogFormatError as CatalogFormatError,
        ComplexAliasError as ComplexAliasError,
        ConfigError as ConfigError,
        DeclarationMissingError as DeclarationMissingError,
        DependentTypeUnsafeError as DependentTypeUnsafeError,
        ErrorCategory as ErrorCategory,
        ErrorCode as ErrorCode,
        InputError as InputError,
        InternalError as InternalError,
        InvalidTypeNameError as InvalidTypeNameError,
        KnownUnsafeTypeError as KnownUnsafeTypeError,
        UnsafeByValueError as UnsafeByValueError,
        UnsupportedDeclarationError as UnsupportedDeclarationError,
        VirtualDispatchError as VirtualDispatchError,
    )
    from .ingestion import ingest as ingest
    from .known_types import (
        KNOWN_TYPES as KNOWN_TYPES,
        KnownType as KnownType,
        is_known_type as is_known_type,
        seed as seed,
    )
    from .resolver import confirm as confirm
    from .safety_store import (
        SafetyRecord as SafetyRecord,
        SafetyStore as SafetyStore,
        UnsafeReason as UnsafeReason,
        Verdict as Verdict,
        VerdictKind as VerdictKind,
    )
    from .type_names import (
        TypeIdentifier as TypeIdentifier,
        as_type_identifier as as_type_identifier,
    )
