from __future__ import annotations

import pytest

from arkive.config import (
    ConfigurationError,
    MissingConfigurationError,
    env_flag,
    env_float,
    optional_env_var,
    require_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_names_every_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "  ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert exc.value.names == ("MISSING_A", "MISSING_B")
    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_env_var_strips_and_treats_blank_as_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PADDED", "  value ")
    monkeypatch.setenv("BLANK", "")

    assert optional_env_var("PADDED") == "value"
    assert optional_env_var("BLANK") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("Yes", True), ("on", True), ("0", False), ("FALSE", False), ("off", False)],
)
def test_env_flag_parses_switches(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG", default=not expected) is expected


def test_env_flag_defaults_and_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_FLAG", raising=False)
    assert env_flag("EXAMPLE_FLAG", default=True) is True

    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")
    with pytest.raises(ConfigurationError, match="EXAMPLE_FLAG"):
        env_flag("EXAMPLE_FLAG", default=True)


def test_env_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_NUMBER", raising=False)
    assert env_float("EXAMPLE_NUMBER", default=2.5) == 2.5

    monkeypatch.setenv("EXAMPLE_NUMBER", "0.75")
    assert env_float("EXAMPLE_NUMBER", default=2.5) == 0.75

    monkeypatch.setenv("EXAMPLE_NUMBER", "soon")
    with pytest.raises(ConfigurationError):
        env_float("EXAMPLE_NUMBER", default=2.5)
