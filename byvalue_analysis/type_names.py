"""
byvalue_analysis/type_names.py
══════════════════════════════

Canonical identity of a declared foreign type.

A ``TypeIdentifier`` is an ordered tuple of namespace segments plus a final
name.  Two identifiers are equal iff their full qualified paths match
exactly; there is no normalisation beyond what :meth:`TypeIdentifier.parse`
does to user input (whitespace, a leading ``::`` and template arguments).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from byvalue_analysis.errors import InvalidTypeNameError

NAMESPACE_SEPARATOR = "::"


def _split_qualified(text: str) -> Optional[List[str]]:
    """Split on ``::`` outside of template brackets, dropping the arguments.

    ``std::map<std::string, int>`` gives ``["std", "map"]``.  Returns
    ``None`` when the brackets do not balance.
    """
    segments: List[str] = []
    current: List[str] = []
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth < 0:
                return None
        elif depth == 0 and text.startswith(NAMESPACE_SEPARATOR, i):
            segments.append("".join(current))
            current = []
            i += len(NAMESPACE_SEPARATOR)
            continue
        elif depth == 0:
            current.append(ch)
        i += 1
    if depth != 0:
        return None
    segments.append("".join(current))
    return segments


@dataclass(frozen=True, order=True)
class TypeIdentifier:
    """Fully qualified name of a type; the sole key into a ``SafetyStore``."""

    namespace: Tuple[str, ...]
    name: str

    def __post_init__(self) -> None:
        # Accept any sequence for the namespace but store a tuple so the
        # identifier stays hashable.
        object.__setattr__(self, "namespace", tuple(self.namespace))
        if not self.name:
            raise InvalidTypeNameError("type name must not be empty")
        if any(not seg for seg in self.namespace):
            raise InvalidTypeNameError(
                f"empty namespace segment in {self.qualified_name!r}"
            )

    # ── Construction ─────────────────────────────────────────────────

    @classmethod
    def parse(cls, text: str) -> TypeIdentifier:
        """Build an identifier from user input such as ``"a::b::C"``.

        A leading ``::`` (global namespace) is ignored.  Template arguments
        are dropped, so ``std::unique_ptr<Node>`` and ``std::unique_ptr``
        name the same type.
        """
        stripped = text.strip()
        if stripped.startswith(NAMESPACE_SEPARATOR):
            stripped = stripped[len(NAMESPACE_SEPARATOR):]
        if not stripped:
            raise InvalidTypeNameError(f"invalid type name {text!r}")
        parts = _split_qualified(stripped)
        if parts is None:
            raise InvalidTypeNameError(f"unbalanced template brackets in {text!r}")
        segments = [seg.strip() for seg in parts]
        if any(not seg for seg in segments):
            raise InvalidTypeNameError(f"invalid type name {text!r}")
        return cls(tuple(segments[:-1]), segments[-1])

    # ── Accessors ────────────────────────────────────────────────────

    @property
    def has_namespace(self) -> bool:
        return bool(self.namespace)

    @property
    def qualified_name(self) -> str:
        return NAMESPACE_SEPARATOR.join(self.namespace + (self.name,))

    def __str__(self) -> str:
        return self.qualified_name


TypeLike = Union[TypeIdentifier, str]


def as_type_identifier(value: TypeLike) -> TypeIdentifier:
    """Accept either an identifier or a qualified-name string."""
    if isinstance(value, TypeIdentifier):
        return value
    if isinstance(value, str):
        return TypeIdentifier.parse(value)
    raise InvalidTypeNameError(
        f"expected a type name, got {type(value).__name__}"
    )
