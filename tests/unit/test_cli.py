"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from eth2x.cli import build_parser


class TestBuildParser:
    def test_check_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["check"])
        assert args.command == "check"

    def test_report_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["report"])
        assert args.command == "report"

    def test_keep_command_default_interval(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["keep"])
        assert args.command == "keep"
        assert args.interval is None

    def test_keep_command_custom_interval(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["keep", "10"])
        assert args.command == "keep"
        assert args.interval == 10

    def test_simulate_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["simulate", "2000", "1800.5"])
        assert args.command == "simulate"
        assert args.prices == ["2000", "1800.5"]

    def test_simulate_requires_prices(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["simulate"])

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "check"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "check"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None
