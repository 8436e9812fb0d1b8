"""Tests for config.py"""

import pytest

import config
from config import load_sections, section_from_options, validate_config, get_timeout, get_cache_dir
from error_handling import ConfigurationError


def test_load_sections(tmp_path):
    path = tmp_path / "sections.yml"
    path.write_text(
        "main:\n"
        "  subscription_url: https://sub.example.com/x\n"
        "  subscription_type: singbox\n"
        "  subscription_filter: us jp\n"
        "pinned:\n"
        "  subscription_selected: [US-1, JP-2]\n"
        "bare:\n",
        encoding="utf-8",
    )
    sections = load_sections(str(path))
    assert list(sections) == ["main", "pinned", "bare"]
    assert sections["main"].url == "https://sub.example.com/x"
    assert sections["main"].type == "singbox"
    assert sections["main"].filters == "us jp"
    assert sections["pinned"].selected_tags == ["US-1", "JP-2"]
    assert sections["pinned"].url is None
    assert sections["bare"].type == "auto"


def test_load_sections_empty_file(tmp_path):
    path = tmp_path / "sections.yml"
    path.write_text("", encoding="utf-8")
    assert load_sections(str(path)) == {}


@pytest.mark.parametrize("content", ["- a\n- b\n", "main: [1, 2]\n", "main: {a: [\n"])
def test_load_sections_invalid(tmp_path, content):
    path = tmp_path / "sections.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_sections(str(path))


def test_load_sections_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        load_sections(str(tmp_path / "nope.yml"))


def test_section_from_options_empty_url():
    section = section_from_options("s", {"subscription_url": ""})
    assert section.url is None


def test_validate_config_default(monkeypatch):
    monkeypatch.delenv("SUBROUTER_TIMEOUT", raising=False)
    assert validate_config() == []


def test_validate_config_bad_timeout(monkeypatch):
    monkeypatch.setenv("SUBROUTER_TIMEOUT", "soon")
    assert any("SUBROUTER_TIMEOUT" in issue for issue in validate_config())
    with pytest.raises(ConfigurationError):
        get_timeout()


def test_validate_config_identical_identities(monkeypatch):
    monkeypatch.setattr(config, "USER_AGENT_LINKS", config.USER_AGENT_STRUCTURED)
    assert "Structured and legacy client identities must differ" in validate_config()


def test_cache_dir(monkeypatch):
    monkeypatch.delenv("SUBROUTER_CACHE_DIR", raising=False)
    assert get_cache_dir() == config.DEFAULT_CACHE_DIR
