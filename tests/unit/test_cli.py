"""Unit tests for the command line entry point."""

import argparse
from unittest.mock import AsyncMock, patch

import pytest

from wahoo.__main__ import build_settings, main, parse_addr, serve
from wahoo.config import Settings
from wahoo.core.exceptions import StoreError


class TestParseAddr:
    """Tests for --addr parsing."""

    @pytest.mark.parametrize(
        "addr, expected",
        [
            ("localhost:8080", ("localhost", 8080)),
            ("127.0.0.1:9000", ("127.0.0.1", 9000)),
            (":8080", ("0.0.0.0", 8080)),
            ("[::1]:8080", ("::1", 8080)),
        ],
    )
    def test_valid(self, addr, expected):
        assert parse_addr(addr) == expected

    @pytest.mark.parametrize("addr", ["localhost", "localhost:http", "localhost:0", "localhost:70000"])
    def test_invalid(self, addr):
        with pytest.raises(ValueError):
            parse_addr(addr)


class TestMain:
    """Tests for startup handling."""

    def test_flags_override_settings(self, monkeypatch):
        monkeypatch.setenv("STORE_DIR", "/from/env")
        args = argparse.Namespace(store_dir="data", addr="0.0.0.0:9090", no_browser=True)

        settings = build_settings(args)

        assert settings.STORE_DIR == "data"
        assert settings.HOST == "0.0.0.0"
        assert settings.PORT == 9090
        assert settings.OPEN_BROWSER is False

    def test_bad_address_exits_with_error(self, capsys):
        """Test that a bad address is fatal."""
        assert main(["--addr", "nowhere", "--no-browser"]) == 1
        assert "invalid address" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_store_failure_is_fatal(self, tmp_path, capsys):
        """Test that an unopenable store ends startup with status 1."""
        settings = Settings(_env_file=None, STORE_DIR=str(tmp_path), OPEN_BROWSER=False)

        with patch("wahoo.db.store.Store.init", AsyncMock(side_effect=StoreError("Failed to open store: denied"))):
            assert await serve(settings) == 1

        assert "Failed to open store" in capsys.readouterr().err
