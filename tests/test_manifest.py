import pytest

from osgibundle.manifest import (
    MAX_LINE_BYTES,
    Clause,
    HeaderSyntaxError,
    cleanup_version,
    is_valid_header_name,
    is_valid_header_value,
    is_valid_version,
    parse_clause,
    parse_manifest,
    render_manifest,
    split_clauses,
)

# ── Rendering / parsing ─────────────────────────────────────────────


def test_manifest_version_is_rendered_first() -> None:
    data = render_manifest({"Built-By": "xyz", "Manifest-Version": "1.0"})

    assert data.startswith(b"Manifest-Version: 1.0\r\n")
    assert data.endswith(b"\r\n\r\n")
    assert b"Built-By: xyz\r\n" in data


def test_long_values_wrap_at_72_bytes_and_parse_back() -> None:
    value = ",".join(f"org.example.package{i}" for i in range(20))

    data = render_manifest({"Export-Package": value})

    for line in data.split(b"\r\n"):
        assert len(line) <= MAX_LINE_BYTES
    assert parse_manifest(data)["Export-Package"] == value


def test_wrapping_does_not_split_multibyte_characters() -> None:
    value = "é" * 80

    data = render_manifest({"Bundle-Description": value})

    assert parse_manifest(data)["Bundle-Description"] == value


def test_parse_rejects_orphan_continuation() -> None:
    with pytest.raises(HeaderSyntaxError):
        parse_manifest(b" dangling\r\n")


@pytest.mark.parametrize("value", ["a\r\nX-Extra: 1", "a\nb", "a\0b"])
def test_render_refuses_values_that_break_lines(value: str) -> None:
    assert not is_valid_header_value(value)
    with pytest.raises(HeaderSyntaxError):
        render_manifest({"Built-By": value})


# ── Names and versions ──────────────────────────────────────────────


@pytest.mark.parametrize("name", ["Built-By", "Bundle-Version", "X_1"])
def test_valid_header_names(name: str) -> None:
    assert is_valid_header_name(name)


@pytest.mark.parametrize("name", ["Bad Header", "Colon:Name", "-Leading", "A" * 71])
def test_invalid_header_names(name: str) -> None:
    assert not is_valid_header_name(name)


def test_version_validation() -> None:
    assert is_valid_version("1")
    assert is_valid_version("1.0.2.qualifier-1")
    assert not is_valid_version("1.0-SNAPSHOT")
    assert not is_valid_version("one")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.0.2", "1.0.2"),
        ("1.0.2-SNAPSHOT", "1.0.2.SNAPSHOT"),
        ("2", "2"),
        ("3-beta+1", "3.0.0.beta_1"),
        ("unspecified", None),
        (None, None),
    ],
)
def test_cleanup_version(raw: str | None, expected: str | None) -> None:
    assert cleanup_version(raw) == expected


# ── Clauses ─────────────────────────────────────────────────────────


def test_clause_parsing_keeps_names_and_parameters() -> None:
    clause = parse_clause('org.foo;org.bar;version="[1.0,2)";resolution:=optional')

    assert clause.names == ("org.foo", "org.bar")
    assert clause.attribute("version") == "[1.0,2)"
    assert clause.directive("resolution") == "optional"
    assert clause.render("org.foo") == 'org.foo;version="[1.0,2)";resolution:=optional'


def test_split_respects_quoted_commas_and_keeps_empty_clauses() -> None:
    parts = split_clauses('a;version="[1,2)",,b')

    assert parts == ['a;version="[1,2)"', "", "b"]


def test_unbalanced_quote_is_a_syntax_error() -> None:
    with pytest.raises(HeaderSyntaxError):
        split_clauses('org.foo;version="1.0')


@pytest.mark.parametrize("text", ["version=1", "a;;b", "a;=x", "a;x=1;b"])
def test_structurally_invalid_clauses(text: str) -> None:
    with pytest.raises(HeaderSyntaxError):
        parse_clause(text)


def test_clause_render_defaults_to_all_names() -> None:
    assert Clause(names=("a", "b"), parameters=("x=1",)).render() == "a;b;x=1"
