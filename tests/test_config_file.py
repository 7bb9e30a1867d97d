"""Tests for seeborg/config_file.py — TOML configuration utilities."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

import seeborg.config_file as cf
from seeborg.config_file import find_config, generate_template, load_config


# ---------------------------------------------------------------------------
# find_config
# ---------------------------------------------------------------------------

class TestFindConfig:
    """Tests for find_config() search order."""

    @pytest.fixture(autouse=True)
    def _isolate(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))
        monkeypatch.setattr(cf, "_PROJECT_ROOT", tmp_path / "project")
        (tmp_path / "cwd").mkdir()
        monkeypatch.chdir(tmp_path / "cwd")

    def test_finds_in_cwd(self, tmp_path):
        toml = tmp_path / "cwd" / "seeborg.toml"
        toml.write_text('token = "x"\n')
        assert find_config() == toml

    def test_finds_in_xdg_config(self, tmp_path):
        xdg = tmp_path / "home" / ".config" / "seeborg"
        xdg.mkdir(parents=True)
        toml = xdg / "seeborg.toml"
        toml.write_text("")
        assert find_config() == toml

    def test_finds_in_project_root(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        toml = project / "seeborg.toml"
        toml.write_text("")
        assert find_config() == toml

    def test_cwd_takes_priority_over_xdg(self, tmp_path):
        xdg = tmp_path / "home" / ".config" / "seeborg"
        xdg.mkdir(parents=True)
        (xdg / "seeborg.toml").write_text("")
        cwd = tmp_path / "cwd" / "seeborg.toml"
        cwd.write_text("")
        assert find_config() == cwd

    def test_returns_none_when_not_found(self):
        assert find_config() is None


# ---------------------------------------------------------------------------
# load_config / generate_template
# ---------------------------------------------------------------------------

class TestLoadConfig:
    def test_parses_tables(self, tmp_path):
        path = tmp_path / "seeborg.toml"
        path.write_text('[behavior]\nreact_rate = 5\n\n[guilds."1"]\nreacting = true\n')
        assert load_config(path) == {
            "behavior": {"react_rate": 5},
            "guilds": {"1": {"reacting": True}},
        }

    def test_invalid_toml_raises(self, tmp_path):
        path = tmp_path / "seeborg.toml"
        path.write_text("[unterminated\n")
        with pytest.raises(tomllib.TOMLDecodeError):
            load_config(path)


class TestGenerateTemplate:
    def test_template_is_valid_toml(self):
        data = tomllib.loads(generate_template())
        assert data == {"behavior": {}}

    def test_template_mentions_every_behavior_key(self):
        from seeborg.config import BEHAVIOR_KEYS

        template = generate_template()
        for key in BEHAVIOR_KEYS:
            assert key in template
