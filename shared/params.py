"""Declarative parameter schema.

A control surface is defined as a list of ParamDef objects. ParamSchema
wraps the list and derives the dicts the engine, renderer and tests use
(defaults, ranges, choice counts) plus validation of raw user input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ParamType(Enum):
    FLOAT = "float"
    INT = "int"
    CHOICE = "choice"


@dataclass
class ParamDef:
    key: str
    type: ParamType
    default: Any
    section: str
    label: str = ""
    unit: str = ""
    range: tuple | None = None        # (min, max) for continuous params
    choices: list[str] | None = None  # display names for CHOICE type


class ParamSchema:
    """Derives param structures from a declarative param list."""

    def __init__(self, params: list[ParamDef]):
        self._params = params
        self._by_key: dict[str, ParamDef] = {p.key: p for p in params}

    def default_params(self) -> dict:
        return {p.key: p.default for p in self._params}

    def param_ranges(self) -> dict[str, tuple]:
        """Continuous params only (float/int with range)."""
        return {p.key: p.range for p in self._params
                if p.range is not None and p.type is not ParamType.CHOICE}

    def choice_ranges(self) -> dict[str, int]:
        """Choice param -> number of options."""
        return {p.key: len(p.choices) for p in self._params
                if p.type is ParamType.CHOICE and p.choices}

    def validate_and_clamp(self, raw: dict) -> dict:
        """Validate and clamp a raw params dict (e.g. from a CLI or preset file).

        Unknown keys are dropped. Values are type-cast and clamped to range;
        values that cannot be cast are dropped too.
        """
        result = {}
        for key, value in raw.items():
            p = self._by_key.get(key)
            if p is None:
                continue
            try:
                if p.type is ParamType.FLOAT:
                    v = float(value)
                else:
                    v = int(round(float(value)))
            except (TypeError, ValueError):
                continue

            if p.type is ParamType.CHOICE:
                v = max(0, min(len(p.choices) - 1, v))
            elif p.range is not None:
                lo, hi = p.range
                v = max(lo, min(hi, v))
            result[key] = v
        return result

    def resolve(self, raw: dict) -> dict:
        """Defaults overlaid with the validated subset of `raw`."""
        params = self.default_params()
        params.update(self.validate_and_clamp(raw))
        return params
