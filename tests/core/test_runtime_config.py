from pathlib import Path

import pytest

from swaypath.core.runtime_config import runtime_config, set_config_path


@pytest.fixture(autouse=True)
def _reset_runtime_config() -> None:
    set_config_path(None)
    yield
    set_config_path(None)


def _isolate_config_discovery(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_packaged_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    cfg = runtime_config()
    assert cfg.config_path is None
    assert cfg.curve_resolution == 32
    assert cfg.max_substitutions == 10
    assert cfg.default_duration == 5.0
    assert cfg.default_loops == 0
    assert cfg.svg_decimals == 3


def test_discovered_config_overrides_one_section(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    discovered = tmp_path / ".swaypath" / "config.yaml"
    discovered.parent.mkdir(parents=True, exist_ok=True)
    discovered.write_text("tessellation:\n  curve_resolution: 8\n", encoding="utf-8")

    cfg = runtime_config()
    assert cfg.config_path == discovered
    assert cfg.curve_resolution == 8
    assert cfg.max_substitutions == 10


def test_explicit_config_overrides_discovered_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    discovered = tmp_path / ".swaypath" / "config.yaml"
    discovered.parent.mkdir(parents=True, exist_ok=True)
    discovered.write_text(
        "tessellation:\n  curve_resolution: 8\nexpression:\n  max_substitutions: 3\n",
        encoding="utf-8",
    )

    explicit = tmp_path / "explicit.yaml"
    explicit.write_text("tessellation:\n  curve_resolution: 64\n", encoding="utf-8")
    set_config_path(explicit)

    cfg = runtime_config()
    assert cfg.config_path == explicit
    assert cfg.curve_resolution == 64
    assert cfg.max_substitutions == 3


def test_runtime_config_is_cached_until_path_changes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    first = runtime_config()
    assert runtime_config() is first

    explicit = tmp_path / "explicit.yaml"
    explicit.write_text("animation:\n  default_loops: 2\n", encoding="utf-8")
    set_config_path(explicit)
    assert runtime_config().default_loops == 2


def test_explicit_config_path_missing_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    set_config_path(tmp_path / "missing.yaml")

    with pytest.raises(FileNotFoundError):
        runtime_config()


@pytest.mark.parametrize(
    "text, exc",
    [
        ("version: 2\n", RuntimeError),
        ("- 1\n- 2\n", RuntimeError),
        ("tessellation: 3\n", RuntimeError),
        ("tessellation:\n  curve_resolution: 0\n", ValueError),
        ("animation:\n  default_duration: 0\n", ValueError),
        ("expression:\n  max_substitutions: abc\n", RuntimeError),
    ],
)
def test_invalid_config_raises(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, text: str, exc: type[Exception]
):
    _isolate_config_discovery(tmp_path, monkeypatch)

    explicit = tmp_path / "bad.yaml"
    explicit.write_text(text, encoding="utf-8")
    set_config_path(explicit)

    with pytest.raises(exc):
        runtime_config()
