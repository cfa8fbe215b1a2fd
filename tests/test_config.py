from __future__ import annotations

import pytest
from pydantic import ValidationError

from strider_sandbox.config import SandboxConfig, load_config


def test_defaults() -> None:
    config = load_config()
    assert config == SandboxConfig(host="0.0.0.0", port=4001, debug=False, sandbox_id=None)


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("HTTP_PORT", "8080")
    monkeypatch.setenv("STRIDER_DEBUG", "true")
    monkeypatch.setenv("SANDBOX_ID", "sbx-1")
    monkeypatch.setenv("HOST", "127.0.0.1")

    config = load_config()

    assert config.port == 8080
    assert config.debug is True
    assert config.sandbox_id == "sbx-1"
    assert config.host == "127.0.0.1"


def test_yaml_file_with_env_precedence(tmp_path, monkeypatch) -> None:
    path = tmp_path / "sandbox.yaml"
    path.write_text("port: 5000\ndebug: true\nsandbox_id: from-file\n")
    monkeypatch.setenv("SANDBOX_ID", "from-env")

    config = load_config(str(path))

    assert config.port == 5000
    assert config.debug is True
    assert config.sandbox_id == "from-env"


def test_config_path_from_environment(tmp_path, monkeypatch) -> None:
    path = tmp_path / "sandbox.yaml"
    path.write_text("port: 4500\n")
    monkeypatch.setenv("STRIDER_CONFIG", str(path))

    assert load_config().port == 4500


def test_missing_env_config_file_is_ignored(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("STRIDER_CONFIG", str(tmp_path / "nope.yaml"))
    assert load_config().port == 4001


def test_missing_explicit_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_file_raises(tmp_path) -> None:
    path = tmp_path / "sandbox.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(str(path))


@pytest.mark.parametrize("port", ["-1", "70000", "http"])
def test_invalid_port(monkeypatch, port: str) -> None:
    monkeypatch.setenv("HTTP_PORT", port)
    with pytest.raises(ValidationError):
        load_config()


def test_handler_selection_from_environment(monkeypatch) -> None:
    assert load_config().handler == "echo"

    monkeypatch.setenv("STRIDER_HANDLER", "anthropic")
    monkeypatch.setenv("STRIDER_MODEL", "claude-haiku")
    config = load_config()

    assert config.handler == "anthropic"
    assert config.model == "claude-haiku"


def test_unknown_handler_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("STRIDER_HANDLER", "openai")
    with pytest.raises(ValidationError):
        load_config()
