"""Unit tests for settings providers."""

from __future__ import annotations

import pytest

from nosql_writer.errors import WriterError
from nosql_writer.settings import EnvSettings, SettingsProvider, StaticSettings


class TestStaticSettings:
    """Tests for StaticSettings."""

    @pytest.mark.asyncio
    async def test_returns_url(self) -> None:
        """The configured URL is returned."""
        assert await StaticSettings("http://nosql:5123").get_url() == "http://nosql:5123"

    def test_empty_url_rejected(self) -> None:
        """An empty URL is a configuration error."""
        with pytest.raises(ValueError):
            StaticSettings("")

    def test_conforms_to_protocol(self) -> None:
        """StaticSettings is a SettingsProvider."""
        assert isinstance(StaticSettings("http://nosql:5123"), SettingsProvider)


class TestEnvSettings:
    """Tests for EnvSettings."""

    @pytest.mark.asyncio
    async def test_reads_variable_on_every_call(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Changes to the variable are picked up between calls."""
        settings = EnvSettings("TEST_NOSQL_URL")

        monkeypatch.setenv("TEST_NOSQL_URL", "http://first:5123")
        assert await settings.get_url() == "http://first:5123"

        monkeypatch.setenv("TEST_NOSQL_URL", "http://second:5123")
        assert await settings.get_url() == "http://second:5123"

    @pytest.mark.asyncio
    async def test_default_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """NOSQL_WRITER_URL is read by default."""
        monkeypatch.setenv("NOSQL_WRITER_URL", "http://default:5123")
        assert await EnvSettings().get_url() == "http://default:5123"

    @pytest.mark.asyncio
    async def test_unset_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unset variable raises WriterError."""
        monkeypatch.delenv("TEST_NOSQL_URL", raising=False)
        with pytest.raises(WriterError, match="TEST_NOSQL_URL"):
            await EnvSettings("TEST_NOSQL_URL").get_url()
