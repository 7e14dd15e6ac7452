"""Tests for config module."""

import pytest
from pathlib import Path

from pollwatcher.config import WatcherConfig, parse_duration
from pollwatcher.exceptions import ConfigurationError, DurationTooShortError
from pollwatcher.models import Op


class TestParseDuration:
    """Tests for parse_duration."""

    def test_milliseconds(self):
        assert parse_duration("100ms") == pytest.approx(0.1)

    def test_seconds(self):
        assert parse_duration("1.5s") == pytest.approx(1.5)

    def test_compound(self):
        assert parse_duration("1m30s") == pytest.approx(90.0)

    def test_small_units(self):
        assert parse_duration("500us") == pytest.approx(0.0005)
        assert parse_duration("10ns") == pytest.approx(1e-8)

    def test_bare_number_is_milliseconds(self):
        assert parse_duration("250") == pytest.approx(0.25)

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_duration("fast")
        with pytest.raises(ValueError):
            parse_duration("10 parsecs")
        with pytest.raises(ValueError):
            parse_duration("")


class TestWatcherConfig:
    """Tests for WatcherConfig class."""

    def test_default_values(self):
        config = WatcherConfig()
        assert config.poll_interval_ms == 100
        assert config.poll_interval == pytest.approx(0.1)
        assert config.recursive is True
        assert config.ignore_hidden is False
        assert config.max_events == 0
        assert config.ops == []
        assert config.event_buffer_size == 128
        assert config.follow_symlinks is False
        assert config.ignore_paths == []

    def test_custom_values(self, tmp_path):
        config = WatcherConfig(
            poll_interval_ms=250,
            ignore_hidden=True,
            max_events=3,
            ignore_paths=[str(tmp_path)],
        )
        assert config.poll_interval == pytest.approx(0.25)
        assert config.ignore_hidden is True
        assert config.max_events == 3
        assert config.ignore_paths == [tmp_path]

    def test_ops_accept_names(self):
        config = WatcherConfig(ops=["write", Op.CREATE])
        assert config.ops == [Op.WRITE, Op.CREATE]

    def test_non_positive_interval_raises(self):
        with pytest.raises(DurationTooShortError):
            WatcherConfig(poll_interval_ms=0)

    def test_negative_max_events_raises(self):
        with pytest.raises(ConfigurationError):
            WatcherConfig(max_events=-1)


class TestConfigFromEnv:
    """Tests for WatcherConfig.from_env."""

    def test_no_environment_gives_defaults(self, monkeypatch):
        for name in (
            "INTERVAL", "RECURSIVE", "IGNORE_HIDDEN", "MAX_EVENTS",
            "OPS", "EVENT_BUFFER_SIZE", "ERROR_BUFFER_SIZE", "FOLLOW_SYMLINKS",
            "IGNORE",
        ):
            monkeypatch.delenv(f"POLLWATCHER_{name}", raising=False)

        assert WatcherConfig.from_env() == WatcherConfig()

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("POLLWATCHER_INTERVAL", "2s")
        monkeypatch.setenv("POLLWATCHER_RECURSIVE", "false")
        monkeypatch.setenv("POLLWATCHER_IGNORE_HIDDEN", "yes")
        monkeypatch.setenv("POLLWATCHER_MAX_EVENTS", "5")
        monkeypatch.setenv("POLLWATCHER_OPS", "write, rename")
        monkeypatch.setenv("POLLWATCHER_IGNORE", "/a,/b")
        monkeypatch.setenv("POLLWATCHER_EVENT_BUFFER_SIZE", "64")
        monkeypatch.setenv("POLLWATCHER_ERROR_BUFFER_SIZE", "4")

        config = WatcherConfig.from_env()

        assert config.poll_interval_ms == 2000
        assert config.recursive is False
        assert config.ignore_hidden is True
        assert config.max_events == 5
        assert config.ops == [Op.WRITE, Op.RENAME]
        assert config.ignore_paths == [Path("/a"), Path("/b")]
        assert config.event_buffer_size == 64
        assert config.error_buffer_size == 4

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("POLLWATCHER_MAX_EVENTS", "5")

        config = WatcherConfig.from_env(max_events=1)

        assert config.max_events == 1

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("MYAPP_INTERVAL", "50ms")

        config = WatcherConfig.from_env(prefix="MYAPP_")

        assert config.poll_interval_ms == 50
