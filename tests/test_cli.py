"""Tests for the command-line interface"""

import json
import sys
from unittest.mock import patch

import pytest
import yaml

from unified_airquality import __version__
from unified_airquality.cli import async_main, build_parser


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.once is False
        assert args.no_web is False

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestAsyncMain:
    @pytest.mark.asyncio
    async def test_once_with_unknown_provider(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "sources": [{"id": "a", "provider": "nope", "keys": ["temperature"]}],
                    "services": {"temperature": {"temperature": "a"}},
                }
            )
        )

        code = await async_main(["-c", str(path), "--once"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["error"] is False
        assert output["failed_sources"] == []
        assert output["values"] == {"temperature": None}
        assert output["air_quality"] == "unknown"

    @pytest.mark.asyncio
    async def test_once_with_failing_source(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "sources": [{"id": "indoor", "provider": "bme280", "keys": ["humidity"]}],
                    "services": {"humidity": {"humidity": "indoor"}},
                }
            )
        )

        with patch.dict(sys.modules, {"smbus2": None, "bme280": None}):
            code = await async_main(["-c", str(path), "--once"])

        assert code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["error"] is True
        assert output["failed_sources"] == ["indoor"]
        assert output["faults"] == {"humidity": True}

    @pytest.mark.asyncio
    async def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"services": {"humidity": {"humidity": "ghost"}}}))

        code = await async_main(["-c", str(path), "--once"])

        assert code == 2
        assert "ghost" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_malformed_keys_reported_as_config_error(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump({"sources": [{"id": "a", "provider": "bme280", "keys": "temperature"}]})
        )

        code = await async_main(["-c", str(path), "--once"])

        assert code == 2
        assert "keys must be a list" in capsys.readouterr().err
