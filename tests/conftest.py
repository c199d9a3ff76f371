from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a throwaway file so tests never touch the real config."""
    path = tmp_path / "config" / "settings.json"
    path.parent.mkdir(parents=True)
    monkeypatch.setattr(settings, "get_settings_path", lambda: path)
    settings.reset_cache()
    yield path
    settings.reset_cache()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
