"""Tests for carddav_sync.config_loader: hierarchical config loading."""

import textwrap

import pytest
import yaml

from carddav_sync.config_loader import (
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run in an empty CWD with a fake HOME and no CARDDAV_SYNC_CONFIG."""
    monkeypatch.delenv("CARDDAV_SYNC_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("DAV_HOST", "dav.local")
        assert interpolate_env_vars("https://${DAV_HOST}/") == "https://dav.local/"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}") == "fallback"

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("DAV_PASS", "s3cret")
        data = {"carddav": {"password": "${DAV_PASS}", "timeout": 60}, "l": ["${DAV_PASS}", 1]}
        assert interpolate_env_vars(data) == {
            "carddav": {"password": "s3cret", "timeout": 60},
            "l": ["s3cret", 1],
        }


# -------------------------------------------------------------------------
# Convention-based file discovery
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    """Tests for discover_config_files() precedence and filtering."""

    def test_env_var_takes_highest_precedence(self, isolated, monkeypatch):
        custom = _write(isolated / "custom.yml", "custom: true\n")
        _write(isolated / ".carddav_sync" / "config.yml", "project: true\n")
        monkeypatch.setenv("CARDDAV_SYNC_CONFIG", str(custom))

        result = discover_config_files()
        assert result[0] == custom.resolve()
        assert len(result) == 2

    def test_project_before_global(self, isolated):
        proj = _write(isolated / ".carddav_sync" / "config.yml", "p: 1\n")
        glob = _write(
            isolated / "home" / ".config" / "carddav_sync" / "config.yml",
            "g: 1\n",
        )

        result = discover_config_files()
        assert result.index(proj) < result.index(glob)

    def test_yaml_extension_discovered(self, isolated):
        proj = _write(isolated / ".carddav_sync" / "config.yaml", "p: 1\n")
        assert proj in discover_config_files()

    def test_empty_filesystem_returns_empty(self, isolated):
        assert discover_config_files() == []


# -------------------------------------------------------------------------
# Hierarchical merge
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config() merge and interpolation."""

    def test_project_overrides_global_key_by_key(self, isolated):
        _write(
            isolated / "home" / ".config" / "carddav_sync" / "config.yml",
            """\
            carddav:
              url: https://global.example.com/book/
              username: globaluser
            contacts:
              path: GlobalContacts
            """,
        )
        _write(
            isolated / ".carddav_sync" / "config.yml",
            """\
            carddav:
              url: https://project.example.com/book/
            """,
        )

        result = load_hierarchical_config()
        assert result["carddav"] == {
            "url": "https://project.example.com/book/",
            "username": "globaluser",
        }
        assert result["contacts"]["path"] == "GlobalContacts"

    def test_env_var_interpolation_after_merge(self, isolated, monkeypatch):
        monkeypatch.setenv("MY_SECRET", "s3cret")
        _write(
            isolated / ".carddav_sync" / "config.yml",
            """\
            carddav:
              password: "${MY_SECRET}"
            """,
        )

        assert load_hierarchical_config()["carddav"]["password"] == "s3cret"

    def test_zero_config_returns_empty_dict(self, isolated):
        assert load_hierarchical_config() == {}

    def test_non_dict_root_raises(self, isolated, monkeypatch):
        bad = _write(isolated / "bad.yml", "- item1\n- item2\n")
        monkeypatch.setenv("CARDDAV_SYNC_CONFIG", str(bad))

        with pytest.raises(ValueError, match="must be a mapping"):
            load_hierarchical_config()

    def test_empty_file_contributes_nothing(self, isolated):
        _write(isolated / ".carddav_sync" / "config.yml", "# nothing yet\n")
        assert load_hierarchical_config() == {}

    def test_scalar_section_replaced_whole(self, isolated):
        _write(
            isolated / "home" / ".config" / "carddav_sync" / "config.yml",
            "contacts:\n  path: People\n",
        )
        _write(isolated / ".carddav_sync" / "config.yml", "contacts: null\n")

        assert load_hierarchical_config() == {"contacts": None}

    def test_invalid_yaml_raises(self, isolated):
        _write(isolated / ".carddav_sync" / "config.yml", "carddav: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()


# -------------------------------------------------------------------------
# Config bootstrapping
# -------------------------------------------------------------------------


class TestEnsureConfig:
    """Tests for ensure_config()."""

    def test_ensure_creates_starter(self, isolated):
        path = ensure_config()

        assert path == isolated / ".carddav_sync" / "config.yml"
        assert path.exists()
        text = path.read_text()
        assert "carddav:" in text
        assert "CARDDAV_URL" in text
        # The starter is fully commented out, so it loads as nothing
        assert yaml.safe_load(text) is None

    def test_ensure_returns_existing(self, isolated):
        existing = _write(isolated / ".carddav_sync" / "config.yml", "a: 1\n")
        assert ensure_config() == existing
        assert existing.read_text() == "a: 1\n"
