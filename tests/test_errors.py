from osgibundle.adapter import BuildResult
from osgibundle.errors import (
    ConfigError,
    ErrorCode,
    FatalBuildError,
    HostIOFailure,
    ValidationError,
)


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        ConfigError("bad config"),
        FatalBuildError("bad manifest"),
        HostIOFailure("disk full"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.CONFIG.value,
        ErrorCode.BUILD.value,
        ErrorCode.HOST_IO.value,
    ]


def test_error_string_includes_hint_and_non_empty_context() -> None:
    error = ConfigError(
        "Bundle configuration does not exist.",
        hint="Create bundle.toml in the project directory.",
        context={"path": "demo/bundle.toml", "key": ""},
    )

    assert str(error).splitlines() == [
        "Bundle configuration does not exist.",
        "Hint: Create bundle.toml in the project directory.",
        "  path: demo/bundle.toml",
    ]


def test_to_dict_omits_missing_hint() -> None:
    payload = ValidationError("bad input", context={"key": "x"}).to_dict()

    assert payload["code"] == "E_VALIDATION"
    assert payload["context"] == {"key": "x"}
    assert "hint" not in payload


def test_fatal_build_error_carries_result() -> None:
    result = BuildResult(manifest=b"", entries=())

    error = FatalBuildError("boom", result=result)

    assert error.result is result
    assert FatalBuildError("boom").result is None
