import logging
from pathlib import Path

import pytest

from octave_mcp import OctaveSettings
from octave_mcp.config import (
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_SCRIPT_LENGTH_LIMIT,
    DEFAULT_TIMEOUT_SECONDS,
)


def test_defaults_when_environment_is_empty() -> None:
    settings = OctaveSettings.from_env({})
    assert settings.binary == "octave"
    assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS == 10
    assert settings.concurrency_limit == DEFAULT_CONCURRENCY_LIMIT == 10
    assert settings.script_length_limit == DEFAULT_SCRIPT_LENGTH_LIMIT == 10000
    assert settings.graphics_toolkit == "qt"


def test_environment_values_are_read() -> None:
    settings = OctaveSettings.from_env(
        {
            "OCTAVE_SCRIPT_TIMEOUT": "30",
            "OCTAVE_CONCURRENCY_LIMIT": " 3 ",
            "OCTAVE_SCRIPT_LENGTH_LIMIT": "500",
            "OCTAVE_BINARY": "/opt/octave/bin/octave-cli",
            "OCTAVE_GRAPHICS_TOOLKIT": "gnuplot",
        }
    )
    assert settings.timeout_seconds == 30
    assert settings.concurrency_limit == 3
    assert settings.script_length_limit == 500
    assert settings.binary == "/opt/octave/bin/octave-cli"
    assert settings.graphics_toolkit == "gnuplot"


@pytest.mark.parametrize("raw", ["abc", "0", "-4", "1.5"])
def test_invalid_values_fall_back_with_warning(raw: str, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="octave_mcp.config"):
        settings = OctaveSettings.from_env({"OCTAVE_CONCURRENCY_LIMIT": raw})

    assert settings.concurrency_limit == DEFAULT_CONCURRENCY_LIMIT
    assert "OCTAVE_CONCURRENCY_LIMIT" in caplog.text


def test_one_bad_value_does_not_affect_others(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="octave_mcp.config"):
        settings = OctaveSettings.from_env(
            {"OCTAVE_SCRIPT_TIMEOUT": "never", "OCTAVE_SCRIPT_LENGTH_LIMIT": "42"}
        )
    assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert settings.script_length_limit == 42


def test_programmatic_construction_is_strict() -> None:
    with pytest.raises(ValueError, match="concurrency_limit"):
        OctaveSettings(concurrency_limit=0)
    with pytest.raises(ValueError, match="binary"):
        OctaveSettings(binary="  ")


def test_settings_file_with_environment_override(tmp_path: Path) -> None:
    config = tmp_path / "octave-mcp.toml"
    config.write_text(
        "[octave]\n"
        "timeout_seconds = 20\n"
        "concurrency_limit = 4\n"
        "graphics_toolkit = \"gnuplot\"\n",
        encoding="utf-8",
    )

    settings = OctaveSettings.from_file(str(config), {"OCTAVE_CONCURRENCY_LIMIT": "2"})

    assert settings.timeout_seconds == 20
    assert settings.concurrency_limit == 2
    assert settings.graphics_toolkit == "gnuplot"
    assert settings.script_length_limit == DEFAULT_SCRIPT_LENGTH_LIMIT


def test_settings_file_invalid_value_falls_back(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = tmp_path / "octave-mcp.toml"
    config.write_text("[octave]\nscript_length_limit = \"lots\"\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="octave_mcp.config"):
        settings = OctaveSettings.from_file(str(config), {})

    assert settings.script_length_limit == DEFAULT_SCRIPT_LENGTH_LIMIT
    assert "script_length_limit" in caplog.text


def test_settings_file_must_hold_a_table(tmp_path: Path) -> None:
    config = tmp_path / "octave-mcp.toml"
    config.write_text("octave = 3\n", encoding="utf-8")
    with pytest.raises(ValueError, match="TOML table"):
        OctaveSettings.from_file(str(config), {})
