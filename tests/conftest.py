"""Shared fixtures: isolate tests from user settings and SHODH_* variables."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path_factory, monkeypatch):
    config_home = tmp_path_factory.mktemp("xdg-config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    for name in list(os.environ):
        if name.startswith("SHODH_"):
            monkeypatch.delenv(name, raising=False)
    return config_home


@pytest.fixture
def make_tree(tmp_path):
    """Create files/directories from a list of relative paths.

    Paths ending in "/" become directories.
    """

    def _make(entries):
        for entry in entries:
            target = tmp_path / entry
            if entry.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("")
        return tmp_path

    return _make
