import tomllib
from importlib import metadata
from pathlib import Path

import pytest

from core import app_version


@pytest.fixture
def fresh_version_cache():
    app_version.get_app_version.cache_clear()
    yield
    app_version.get_app_version.cache_clear()


def test_version_comes_from_pyproject(fresh_version_cache):
    with app_version.PYPROJECT_PATH.open("rb") as handle:
        expected = tomllib.load(handle)["project"]["version"]

    assert app_version.get_app_version() == expected


def test_falls_back_to_distribution_metadata(tmp_path: Path, monkeypatch, fresh_version_cache):
    monkeypatch.setattr(app_version, "PYPROJECT_PATH", tmp_path / "missing.toml")
    monkeypatch.setattr(app_version.metadata, "version", lambda name: "9.9.9")

    assert app_version.get_app_version() == "9.9.9"


def test_unknown_version_when_nothing_is_available(tmp_path: Path, monkeypatch, fresh_version_cache):
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n", encoding="utf-8")
    monkeypatch.setattr(app_version, "PYPROJECT_PATH", tmp_path / "pyproject.toml")

    def _missing(name):
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(app_version.metadata, "version", _missing)

    assert app_version.get_app_version() == app_version.UNKNOWN_VERSION
