"""Resolve manifest attributes and bundle instructions into engine properties."""

from __future__ import annotations

from collections.abc import Mapping

from osgibundle.instructions import InstructionSet
from osgibundle.manifest import cleanup_version

UNSPECIFIED_VERSION = "unspecified"


def resolve_instructions(
    attributes: Mapping[str, object] | InstructionSet | None,
    instructions: InstructionSet | None,
    *,
    defaults: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the flattened instruction mapping the build engine consumes.

    Explicit instructions win over attributes sharing a key, regardless of the
    order in which either was declared. ``defaults`` only fills keys that
    neither layer mentions.
    """
    if isinstance(attributes, InstructionSet):
        attribute_layer = attributes
    else:
        attribute_layer = InstructionSet.from_attributes(attributes)
    instruction_layer = instructions if instructions is not None else InstructionSet()

    resolved = InstructionSet.merge(attribute_layer, instruction_layer).flatten()
    for key, value in (defaults or {}).items():
        resolved.setdefault(key, value)
    return resolved


def project_defaults(name: str | None, version: str | None) -> dict[str, str]:
    """Headers a project contributes when nothing overrides them."""
    defaults: dict[str, str] = {}
    if name:
        defaults["Bundle-SymbolicName"] = name
        defaults["Bundle-Name"] = name
    if version and version != UNSPECIFIED_VERSION:
        cleaned = cleanup_version(version)
        if cleaned is not None:
            defaults["Bundle-Version"] = cleaned
    return defaults
