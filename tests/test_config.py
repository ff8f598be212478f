"""
Test suite for Safe Plex Reboot configuration loading.

Covers config file parsing, layer precedence, credential resolution and
validation.
"""

import dataclasses
from pathlib import Path

import pytest

from safe_plex_reboot.config import (
    ConfigurationManager,
    ConfigurationError,
    ConfigValidationError,
    GuardConfig,
    DEFAULT_CONFIG,
    parse_config_text,
    default_search_paths,
)


@pytest.fixture
def search_paths(tmp_path: Path):
    """Fixture providing four config locations, none of which exist yet."""
    return [
        tmp_path / "home" / ".config" / "plex-reboot.conf",
        tmp_path / "scripts" / "plex-reboot.conf",
        tmp_path / "etc" / "plex-reboot.conf",
        tmp_path / "home" / ".plex-reboot.conf",
    ]


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def load(search_paths, environ=None, config_path=None, **flags) -> GuardConfig:
    manager = ConfigurationManager(config_path, environ=environ or {}, search_paths=search_paths)
    return manager.load_config(**flags)


class TestParseConfigText:
    """Test suite for KEY=value parsing."""

    def test_strips_quotes_and_whitespace(self):
        values = parse_config_text('PLEX_TOKEN="abc123"\nPLEX_SERVER = \'http://nas:32400\' \n')
        assert values == {"PLEX_TOKEN": "abc123", "PLEX_SERVER": "http://nas:32400"}

    def test_ignores_comments_and_junk(self):
        text = "# comment\n\nnot a setting\nCHECK_INTERVAL=60\n"
        assert parse_config_text(text) == {"CHECK_INTERVAL": "60"}

    def test_export_prefix(self):
        assert parse_config_text("export PLEX_TOKEN=xyz") == {"PLEX_TOKEN": "xyz"}

    def test_value_may_contain_equals(self):
        assert parse_config_text("PLEX_TOKEN=a=b=c") == {"PLEX_TOKEN": "a=b=c"}

    def test_first_occurrence_wins(self):
        assert parse_config_text("DEBUG=true\nDEBUG=false") == {"DEBUG": "true"}


class TestCredentialResolution:
    """Test suite for PLEX_TOKEN lookup."""

    def test_environment_wins(self, search_paths):
        write(search_paths[0], "PLEX_TOKEN=from-file")
        config = load(search_paths, environ={"PLEX_TOKEN": "from-env"})
        assert config.token == "from-env"

    def test_empty_environment_value_falls_through(self, search_paths):
        write(search_paths[2], "PLEX_TOKEN=from-etc")
        config = load(search_paths, environ={"PLEX_TOKEN": "  "})
        assert config.token == "from-etc"

    def test_first_file_with_token_wins(self, search_paths):
        write(search_paths[0], "CHECK_INTERVAL=60")
        write(search_paths[1], "PLEX_TOKEN=")
        write(search_paths[2], "PLEX_TOKEN='etc-token'")
        write(search_paths[3], "PLEX_TOKEN=home-token")
        assert load(search_paths).token == "etc-token"

    def test_missing_token_lists_all_locations(self, search_paths):
        write(search_paths[1], "CHECK_INTERVAL=60")

        with pytest.raises(ConfigurationError) as excinfo:
            load(search_paths)

        message = str(excinfo.value)
        assert "PLEX_TOKEN not found" in message
        for path in search_paths:
            assert str(path) in message

    def test_explicit_config_searched_first(self, search_paths, tmp_path):
        explicit = write(tmp_path / "custom.conf", "PLEX_TOKEN=custom")
        write(search_paths[0], "PLEX_TOKEN=standard")
        config = load(search_paths, config_path=str(explicit))
        assert config.token == "custom"
        assert config.config_sources[0] == str(explicit)

    def test_explicit_config_missing(self, search_paths, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load(search_paths, environ={"PLEX_TOKEN": "t"}, config_path=str(tmp_path / "nope.conf"))


class TestConfigurationLayers:
    """Test suite for defaults, files and environment precedence."""

    def test_defaults(self, search_paths):
        config = load(search_paths, environ={"PLEX_TOKEN": "t"})
        assert config.plex_url == DEFAULT_CONFIG["PLEX_SERVER"]
        assert config.check_interval == 300
        assert config.max_wait_time == 7200
        assert config.log_file == "/var/log/update-logs/update.log"
        assert config.connect_timeout == 10
        assert config.request_timeout == 30
        assert config.debug is False
        assert config.config_sources == ()

    def test_first_file_per_key_wins(self, search_paths):
        write(search_paths[0], "PLEX_TOKEN=t\nCHECK_INTERVAL=60")
        write(search_paths[2], "CHECK_INTERVAL=90\nMAX_WAIT_TIME=600")
        config = load(search_paths)
        assert config.check_interval == 60
        assert config.max_wait_time == 600
        assert config.config_sources == (str(search_paths[0]), str(search_paths[2]))

    def test_environment_overrides_files(self, search_paths):
        write(search_paths[0], "PLEX_TOKEN=t\nPLEX_SERVER=http://file:32400\nLOGFILE=/tmp/file.log")
        config = load(search_paths, environ={
            "PLEX_SERVER": "https://env:32400/",
            "CHECK_INTERVAL": "120",
            "DEBUG": "yes",
        })
        assert config.plex_url == "https://env:32400"
        assert config.check_interval == 120
        assert config.log_file == "/tmp/file.log"
        assert config.debug is True

    def test_flags(self, search_paths):
        config = load(search_paths, environ={"PLEX_TOKEN": "t"}, force=True, dry_run=True, debug=True)
        assert (config.force, config.dry_run, config.debug) == (True, True, True)

    def test_unreadable_path_is_skipped(self, search_paths):
        search_paths[0].mkdir(parents=True)  # a directory, not a file
        write(search_paths[1], "PLEX_TOKEN=t")
        assert load(search_paths).token == "t"

    def test_default_search_order(self, tmp_path):
        paths = default_search_paths(home=tmp_path)
        assert paths[0] == tmp_path / ".config" / "plex-reboot.conf"
        assert paths[2] == Path("/etc/plex-reboot.conf")
        assert paths[3] == tmp_path / ".plex-reboot.conf"
        assert paths[1].name == "plex-reboot.conf"


class TestValidation:
    """Test suite for configuration validation."""

    @pytest.mark.parametrize("key,value", [
        ("PLEX_SERVER", "plex.local:32400"),
        ("CHECK_INTERVAL", "abc"),
        ("CHECK_INTERVAL", "0"),
        ("MAX_WAIT_TIME", "-1"),
        ("REQUEST_TIMEOUT", "0"),
        ("DEBUG", "maybe"),
    ])
    def test_invalid_values(self, search_paths, key, value):
        with pytest.raises(ConfigValidationError):
            load(search_paths, environ={"PLEX_TOKEN": "t", key: value})

    def test_zero_max_wait_allowed(self, search_paths):
        assert load(search_paths, environ={"PLEX_TOKEN": "t", "MAX_WAIT_TIME": "0"}).max_wait_time == 0


class TestGuardConfig:
    """Test suite for the immutable configuration value."""

    def test_frozen(self, config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.check_interval = 1

    def test_repr_hides_token(self, config):
        assert config.token not in repr(config)
