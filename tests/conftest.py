# tests/conftest.py
"""
Shared fixtures and builders for the by-value analysis tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from byvalue_analysis.checker import ByValueChecker
from byvalue_analysis.declarations import (
    AliasDecl,
    BlocklistEntry,
    EnumDecl,
    OpaqueDecl,
    StructDecl,
)
from byvalue_analysis.known_types import seed
from byvalue_analysis.safety_store import SafetyStore
from byvalue_analysis.type_names import TypeIdentifier


def T(qualified: str) -> TypeIdentifier:
    """Shorthand for ``TypeIdentifier.parse``."""
    return TypeIdentifier.parse(qualified)


def struct(name: str, *fields: str, virtual: bool = False) -> StructDecl:
    return StructDecl(T(name), tuple(T(f) for f in fields), virtual)


def enum(name: str) -> EnumDecl:
    return EnumDecl(T(name))


def alias(name: str, target: str | None) -> AliasDecl:
    return AliasDecl(T(name), T(target) if target is not None else None)


def opaque(name: str) -> OpaqueDecl:
    return OpaqueDecl(T(name))


def blocked(name: str) -> BlocklistEntry:
    return BlocklistEntry(T(name))


@pytest.fixture
def store() -> SafetyStore:
    """A store holding only the known-type seed."""
    return SafetyStore(seed())


@pytest.fixture
def checker() -> ByValueChecker:
    return ByValueChecker()


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write *data* as JSON under tmp_path and return the path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
