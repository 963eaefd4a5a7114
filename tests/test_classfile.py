import pytest
from helpers import class_bytes

from osgibundle.classfile import ClassFormatError, class_path, package_of, read_class


def test_reads_name_super_and_references() -> None:
    data = class_bytes(
        "org/foo/bar/TestActivator",
        references=("org/osgi/framework/BundleActivator", "org/osgi/framework/BundleContext"),
    )

    info = read_class(data)

    assert info.name == "org/foo/bar/TestActivator"
    assert info.super_name == "java/lang/Object"
    assert info.package == "org.foo.bar"
    assert info.references == {
        "java/lang/Object",
        "org/osgi/framework/BundleActivator",
        "org/osgi/framework/BundleContext",
    }
    assert info.referenced_packages == {"java.lang", "org.osgi.framework"}


def test_array_class_entries_resolve_to_element_types() -> None:
    info = read_class(class_bytes("a/B", references=("[Lorg/other/Thing;", "[[I")))

    assert "org/other/Thing" in info.references
    assert info.referenced_packages == {"java.lang", "org.other"}


def test_default_package_classes_have_empty_package() -> None:
    info = read_class(class_bytes("Standalone"))

    assert info.package == ""


def test_bad_magic_is_rejected() -> None:
    with pytest.raises(ClassFormatError):
        read_class(b"\x00\x00\x00\x00" + class_bytes("a/B")[4:])


def test_truncated_file_is_rejected() -> None:
    with pytest.raises(ClassFormatError):
        read_class(class_bytes("a/B")[:-6])


def test_name_helpers() -> None:
    assert package_of("org/foo/Bar") == "org.foo"
    assert package_of("Bar") == ""
    assert class_path("org.foo.bar.NotExistingActivator") == "org/foo/bar/NotExistingActivator.class"
