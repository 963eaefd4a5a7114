"""Builders for the compiled-project fixtures used across tests."""

from __future__ import annotations

import struct
from collections.abc import Iterable

ACTIVATOR_SOURCE = """package org.foo.bar;

import org.osgi.framework.BundleActivator;
import org.osgi.framework.BundleContext;

public class TestActivator implements BundleActivator {
    public void start(BundleContext context) {}
    public void stop(BundleContext context) {}
}
"""


def class_bytes(
    name: str,
    *,
    super_name: str = "java/lang/Object",
    references: Iterable[str] = (),
) -> bytes:
    """Assemble a minimal, valid class file with the given constant pool classes."""
    pool: list[bytes] = []

    def utf8(text: str) -> int:
        encoded = text.encode("utf-8")
        pool.append(b"\x01" + struct.pack(">H", len(encoded)) + encoded)
        return len(pool)

    def class_entry(text: str) -> int:
        name_index = utf8(text)
        pool.append(b"\x07" + struct.pack(">H", name_index))
        return len(pool)

    this_index = class_entry(name)
    super_index = class_entry(super_name)
    for reference in references:
        class_entry(reference)

    return b"".join(
        (
            struct.pack(">IHH", 0xCAFEBABE, 0, 52),
            struct.pack(">H", len(pool) + 1),
            *pool,
            struct.pack(">HHH", 0x0021, this_index, super_index),
            struct.pack(">HHHH", 0, 0, 0, 0),
        )
    )
