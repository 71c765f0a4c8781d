"""
byvalue_analysis/declarations.py
════════════════════════════════

Declaration records fed to ingestion, and a loader that builds them from
plain data (the JSON form produced by a header/AST front-end).

Catalog format
──────────────
::

    {
      "declarations": [
        {"kind": "struct",  "name": "geo::Point", "fields": ["double", "double"]},
        {"kind": "struct",  "name": "Shape",
         "members": [{"name": "vtable_", "type": null},
                     {"name": "origin",  "type": "geo::Point"}]},
        {"kind": "enum",    "name": "geo::Unit"},
        {"kind": "alias",   "name": "Coord", "target": "double"},
        {"kind": "alias",   "name": "Callback", "target": null},
        {"kind": "opaque",  "name": "Impl"},
        {"kind": "blocklist", "name": "LegacyHandle"}
      ]
    }

A bare list of declaration objects is accepted as well.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from byvalue_analysis.errors import CatalogFormatError, InvalidTypeNameError
from byvalue_analysis.type_names import TypeIdentifier

logger = logging.getLogger(__name__)

# Member name a front-end gives the hidden vtable pointer of a polymorphic class.
VTABLE_MEMBER = "vtable_"


@dataclass(frozen=True)
class StructDecl:
    name: TypeIdentifier
    fields: Tuple[TypeIdentifier, ...] = ()
    has_virtual_dispatch: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))

    @classmethod
    def from_members(
        cls,
        name: TypeIdentifier,
        members: Iterable[Tuple[str, Optional[TypeIdentifier]]],
    ) -> StructDecl:
        """Build a struct from ``(member_name, member_type)`` pairs.

        A member named ``vtable_`` marks virtual dispatch.  Members whose
        type is ``None`` (pointers, arrays and other type expressions that
        are not a plain identifier) are not tracked as fields.
        """
        fields: List[TypeIdentifier] = []
        has_vtable = False
        for member_name, member_type in members:
            if member_name == VTABLE_MEMBER:
                has_vtable = True
            if member_type is not None:
                fields.append(member_type)
        return cls(name, tuple(fields), has_vtable)


@dataclass(frozen=True)
class EnumDecl:
    name: TypeIdentifier


@dataclass(frozen=True)
class AliasDecl:
    """A typedef.  ``target`` is None when the aliased type expression is
    not representable as an identifier (pointer, function type, ...)."""

    name: TypeIdentifier
    target: Optional[TypeIdentifier] = None


@dataclass(frozen=True)
class OpaqueDecl:
    name: TypeIdentifier


@dataclass(frozen=True)
class BlocklistEntry:
    name: TypeIdentifier


Declaration = Union[StructDecl, EnumDecl, AliasDecl, OpaqueDecl, BlocklistEntry]


# ═════════════════════════════════════════════════════════════════════════
#  LOADER
# ═════════════════════════════════════════════════════════════════════════

def _type_name(value: Any, where: str) -> TypeIdentifier:
    if not isinstance(value, str):
        raise CatalogFormatError(f"{where}: expected a type name string, got {value!r}")
    try:
        return TypeIdentifier.parse(value)
    except InvalidTypeNameError as exc:
        raise CatalogFormatError(f"{where}: {exc}") from exc


def _optional_type_name(value: Any, where: str) -> Optional[TypeIdentifier]:
    if value is None:
        return None
    return _type_name(value, where)


def _load_struct(entry: Mapping[str, Any], name: TypeIdentifier, where: str) -> StructDecl:
    virtual = entry.get("virtual", False)
    if not isinstance(virtual, bool):
        raise CatalogFormatError(f"{where}: 'virtual' must be a boolean")

    if "members" in entry:
        members = entry["members"]
        if not isinstance(members, list):
            raise CatalogFormatError(f"{where}: 'members' must be a list")
        pairs: List[Tuple[str, Optional[TypeIdentifier]]] = []
        for i, member in enumerate(members):
            mwhere = f"{where}, member #{i}"
            if not isinstance(member, Mapping) or not isinstance(member.get("name"), str):
                raise CatalogFormatError(f"{mwhere}: expected an object with a 'name'")
            pairs.append((member["name"], _optional_type_name(member.get("type"), mwhere)))
        decl = StructDecl.from_members(name, pairs)
        if virtual and not decl.has_virtual_dispatch:
            decl = StructDecl(name, decl.fields, True)
        return decl

    fields = entry.get("fields", [])
    if not isinstance(fields, list):
        raise CatalogFormatError(f"{where}: 'fields' must be a list")
    return StructDecl(
        name,
        tuple(_type_name(f, f"{where}, field #{i}") for i, f in enumerate(fields)),
        virtual,
    )


def load_declaration(entry: Any, index: int = 0) -> Declaration:
    """Build one declaration record from its plain-data form."""
    where = f"declaration #{index}"
    if not isinstance(entry, Mapping):
        raise CatalogFormatError(f"{where}: expected an object, got {entry!r}")
    kind = entry.get("kind")
    name = _type_name(entry.get("name"), where)

    if kind == "struct":
        return _load_struct(entry, name, where)
    if kind == "enum":
        return EnumDecl(name)
    if kind == "alias":
        return AliasDecl(name, _optional_type_name(entry.get("target"), where))
    if kind == "opaque":
        return OpaqueDecl(name)
    if kind == "blocklist":
        return BlocklistEntry(name)
    raise CatalogFormatError(f"{where}: unknown declaration kind {kind!r}")


def load_catalog(data: Union[Mapping[str, Any], Sequence[Any]]) -> List[Declaration]:
    """Build the ordered declaration list from a decoded catalog."""
    if isinstance(data, Mapping):
        entries = data.get("declarations")
        if not isinstance(entries, list):
            raise CatalogFormatError("catalog must have a 'declarations' list")
    elif isinstance(data, list):
        entries = data
    else:
        raise CatalogFormatError(
            f"catalog must be an object or a list, got {type(data).__name__}"
        )
    declarations = [load_declaration(entry, i) for i, entry in enumerate(entries)]
    logger.debug("Loaded %d declaration(s)", len(declarations))
    return declarations


def load_catalog_file(path: Union[str, Path]) -> List[Declaration]:
    """Read a JSON catalog from *path*."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogFormatError(f"{p}: invalid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise CatalogFormatError(f"{p}: not valid UTF-8: {exc}") from exc
    return load_catalog(data)
