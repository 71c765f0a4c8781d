"""
byvalue_analysis/config.py
══════════════════════════

User configuration for one analysis run: which types are forbidden from
by-value use and which must be proven safe by value.

JSON form::

    {
      "blocklist": ["LegacyHandle", "net::Socket"],
      "by_value":  ["geo::Point", "geo::Rect"]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Union

from byvalue_analysis.errors import ConfigError, InvalidTypeNameError
from byvalue_analysis.type_names import TypeIdentifier


@dataclass
class TypeConfig:
    """Blocklist and by-value requests, as qualified-name strings."""
    blocklist: List[str] = field(default_factory=list)
    by_value: List[str] = field(default_factory=list)

    _KEYS = ("blocklist", "by_value")

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        for key in self._KEYS:
            names = getattr(self, key)
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                warnings.append(f"{key} lists {', '.join(dupes)} more than once")
        both = sorted(set(self.blocklist) & set(self.by_value))
        if both:
            warnings.append(
                f"{', '.join(both)} requested by value but also blocklisted"
            )
        return warnings

    def blocklisted_types(self) -> List[TypeIdentifier]:
        return [self._parse("blocklist", n) for n in self.blocklist]

    def by_value_requests(self) -> List[TypeIdentifier]:
        return [self._parse("by_value", n) for n in self.by_value]

    @staticmethod
    def _parse(key: str, name: str) -> TypeIdentifier:
        try:
            return TypeIdentifier.parse(name)
        except InvalidTypeNameError as exc:
            raise ConfigError(f"{key}: {exc}") from exc

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TypeConfig:
        if not isinstance(data, Mapping):
            raise ConfigError(f"config must be an object, got {type(data).__name__}")
        unknown = sorted(set(data) - set(cls._KEYS))
        if unknown:
            raise ConfigError(f"unknown config key(s): {', '.join(unknown)}")
        values = {}
        for key in cls._KEYS:
            names = data.get(key, [])
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise ConfigError(f"{key} must be a list of type names")
            values[key] = list(names)
        return cls(**values)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> TypeConfig:
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{p}: invalid JSON: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigError(f"{p}: not valid UTF-8: {exc}") from exc
        return cls.from_dict(data)
