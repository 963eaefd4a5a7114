"""Minimal JVM class-file reader.

Only the constant pool, the class header and field/method descriptors are
decoded; that is enough to know which package a class lives in and which
packages it refers to.
"""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass

MAGIC = 0xCAFEBABE

_UTF8 = 1
_CLASS = 7
_NAME_AND_TYPE = 12
_METHOD_TYPE = 16

# Payload sizes of constant pool entries that carry no names we need.
_FIXED_SIZES = {
    3: 4,  # Integer
    4: 4,  # Float
    5: 8,  # Long
    6: 8,  # Double
    8: 2,  # String
    9: 4,  # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    15: 3,  # MethodHandle
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}
_WIDE = {5, 6}

_DESCRIPTOR_CLASS_RE = re.compile(r"L([^;<]+);")


class ClassFormatError(ValueError):
    """Raised when bytes do not form a readable class file."""


@dataclass(frozen=True, slots=True)
class ClassInfo:
    name: str
    super_name: str | None
    references: frozenset[str]

    @property
    def package(self) -> str:
        return package_of(self.name)

    @property
    def referenced_packages(self) -> frozenset[str]:
        packages = {package_of(ref) for ref in self.references}
        packages.discard("")
        return frozenset(packages)


def package_of(internal_name: str) -> str:
    """``org/foo/Bar`` -> ``org.foo``; the default package is ``""``."""
    head, _, _ = internal_name.rpartition("/")
    return head.replace("/", ".")


def class_path(class_name: str) -> str:
    """``org.foo.Bar`` -> ``org/foo/Bar.class``."""
    return class_name.replace(".", "/") + ".class"


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ClassFormatError("Truncated class file.")
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def u1(self) -> int:
        return self.take(1)[0]

    def u2(self) -> int:
        return int(struct.unpack(">H", self.take(2))[0])

    def u4(self) -> int:
        return int(struct.unpack(">I", self.take(4))[0])


def read_class(data: bytes) -> ClassInfo:
    reader = _Reader(data)
    if reader.u4() != MAGIC:
        raise ClassFormatError("Missing class file magic number.")
    reader.u2()  # minor
    reader.u2()  # major

    count = reader.u2()
    utf8: dict[int, str] = {}
    class_refs: dict[int, int] = {}
    descriptor_refs: list[int] = []
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == _UTF8:
            raw = reader.take(reader.u2())
            utf8[index] = raw.decode("utf-8", errors="replace")
        elif tag == _CLASS:
            class_refs[index] = reader.u2()
        elif tag == _NAME_AND_TYPE:
            reader.u2()
            descriptor_refs.append(reader.u2())
        elif tag == _METHOD_TYPE:
            descriptor_refs.append(reader.u2())
        elif tag in _FIXED_SIZES:
            reader.take(_FIXED_SIZES[tag])
        else:
            raise ClassFormatError(f"Unknown constant pool tag {tag} at index {index}.")
        index += 2 if tag in _WIDE else 1

    reader.u2()  # access flags
    this_index = reader.u2()
    super_index = reader.u2()
    for _ in range(reader.u2()):
        reader.u2()

    for _ in range(2):  # fields, then methods
        for _ in range(reader.u2()):
            reader.u2()
            reader.u2()
            descriptor_refs.append(reader.u2())
            for _ in range(reader.u2()):
                reader.u2()
                reader.take(reader.u4())

    def class_name(cp_index: int) -> str:
        try:
            return utf8[class_refs[cp_index]]
        except KeyError as exc:
            raise ClassFormatError(f"Bad class reference at index {cp_index}.") from exc

    name = class_name(this_index)
    super_name = class_name(super_index) if super_index else None

    references: set[str] = set()
    for cp_index in class_refs:
        if cp_index == this_index:
            continue
        references.update(_names_in(class_name(cp_index)))
    for utf8_index in descriptor_refs:
        references.update(_DESCRIPTOR_CLASS_RE.findall(utf8.get(utf8_index, "")))
    references.discard(name)
    return ClassInfo(name=name, super_name=super_name, references=frozenset(references))


def _names_in(class_entry: str) -> list[str]:
    # Array classes are stored as descriptors, e.g. ``[Lorg/foo/Bar;``.
    if class_entry.startswith("["):
        return _DESCRIPTOR_CLASS_RE.findall(class_entry)
    return [class_entry]
