from __future__ import annotations

import json

import pytest

import settings


def test_first_load_writes_defaults(isolated_settings):
    data = settings.load_settings()
    assert data["version"] == settings.DEFAULTS["version"]
    assert settings.get("general.seed_sample_invoices") is True
    assert json.loads(isolated_settings.read_text(encoding="utf-8"))["ui"]["currency_suffix"] == "đ"


def test_set_persists_and_survives_reload(isolated_settings):
    settings.set_("ui.currency_suffix", "VND")
    settings.set_("extra.nested.flag", True)
    settings.reset_cache()

    assert settings.get("ui.currency_suffix") == "VND"
    assert settings.get("extra.nested.flag") is True
    assert settings.get("ui.thousand_separators") is True


def test_get_missing_path_returns_default():
    assert settings.get("nope.nothing", 42) == 42
    assert settings.get("ui.currency_suffix.deeper", "x") == "x"


def test_set_through_non_dict_fails():
    with pytest.raises(TypeError):
        settings.set_("ui.currency_suffix.deeper", 1)


def test_old_file_is_merged_with_defaults(isolated_settings):
    isolated_settings.write_text(json.dumps({"ui": {"thousand_separators": False}}), encoding="utf-8")

    assert settings.get("ui.thousand_separators") is False
    assert settings.get("general.log_level") == "INFO"
    assert settings.load_settings()["version"] == 1


def test_corrupt_file_falls_back_without_overwriting(isolated_settings, caplog):
    isolated_settings.write_text("{not json", encoding="utf-8")

    assert settings.get("general.seed_sample_invoices") is True
    assert isolated_settings.read_text(encoding="utf-8") == "{not json"
    assert "using defaults" in caplog.text


def test_log_dir_is_created(tmp_path):
    target = tmp_path / "logs" / "deep"
    settings.set_("general.log_dir", str(target))
    assert settings.get_log_dir() == target
    assert target.is_dir()


def test_unusable_log_dir_falls_back_to_default(tmp_path, monkeypatch, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    fallback = tmp_path / "default-logs"
    monkeypatch.setitem(settings.DEFAULTS["general"], "log_dir", str(fallback))
    settings.set_("general.log_dir", str(blocker / "logs"))

    assert settings.get_log_dir() == fallback
    assert fallback.is_dir()
    assert "falling back" in caplog.text
