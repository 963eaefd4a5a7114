"""Layered bundle instruction storage.

An :class:`InstructionSet` keeps, per key, the ordered list of raw string
fragments that were declared for it. Two layers exist:

* ``attributes`` mirrors a jar manifest attribute map: the first write for a
  key wins and later writes are ignored.
* ``instructions`` mirrors explicit bundle instructions: every write appends a
  fragment, so ``put("X", "a")`` then ``put("X", "b")`` flattens to ``"a,b"``.

:meth:`InstructionSet.merge` combines the two layers key by key, with the
instruction layer winning outright.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

from osgibundle.errors import ValidationError

FRAGMENT_SEPARATOR = ","


class Layer(StrEnum):
    ATTRIBUTES = "attributes"
    INSTRUCTIONS = "instructions"


def coerce_value(value: object) -> str:
    """Render an instruction value the way the engine expects to read it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


@dataclass(slots=True)
class InstructionSet:
    layer: Layer = Layer.INSTRUCTIONS
    _fragments: dict[str, list[str]] = field(init=False, default_factory=dict, repr=False)

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, object] | None) -> InstructionSet:
        layer = cls(layer=Layer.ATTRIBUTES)
        for key, value in (attributes or {}).items():
            layer.put(key, value)
        return layer

    @classmethod
    def from_instructions(cls, instructions: Mapping[str, object] | None) -> InstructionSet:
        return cls(layer=Layer.INSTRUCTIONS).add_instructions(instructions or {})

    def put(self, key: str, value: object) -> Self:
        _check_key(key)
        fragment = coerce_value(value)
        if self.layer is Layer.ATTRIBUTES:
            self._fragments.setdefault(key, [fragment])
        else:
            self._fragments.setdefault(key, []).append(fragment)
        return self

    def add_instructions(self, instructions: Mapping[str, object]) -> Self:
        for key, value in instructions.items():
            self.put(key, value)
        return self

    def add_instruction_fragments(self, key: str, fragments: Iterable[object]) -> Self:
        _check_key(key)
        values = list(fragments)
        if not values:
            raise ValidationError(
                "instruction() requires at least one value.",
                context={"key": key},
            )
        for value in values:
            self.put(key, value)
        return self

    def fragments(self, key: str) -> tuple[str, ...]:
        return tuple(self._fragments.get(key, ()))

    def keys(self) -> tuple[str, ...]:
        return tuple(self._fragments)

    def __contains__(self, key: object) -> bool:
        return key in self._fragments

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._fragments))

    def __len__(self) -> int:
        return len(self._fragments)

    def copy(self) -> InstructionSet:
        duplicate = InstructionSet(layer=self.layer)
        for key, fragments in self._fragments.items():
            duplicate._fragments[key] = list(fragments)
        return duplicate

    def flatten(self) -> dict[str, str]:
        return {
            key: FRAGMENT_SEPARATOR.join(fragments) for key, fragments in self._fragments.items()
        }

    @staticmethod
    def merge(attributes: InstructionSet, instructions: InstructionSet) -> InstructionSet:
        """Combine layers per key; instruction fragments replace attribute fragments."""
        merged = InstructionSet(layer=Layer.INSTRUCTIONS)
        for key in attributes:
            source = instructions if key in instructions else attributes
            merged._fragments[key] = list(source._fragments[key])
        for key in instructions:
            if key not in merged._fragments:
                merged._fragments[key] = list(instructions._fragments[key])
        return merged


def _check_key(key: object) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError(
            "Instruction keys must be non-empty strings.",
            context={"key": repr(key)},
        )
