"""Unit tests for CLI argument parsing and command dispatch."""
from __future__ import annotations

import argparse

import pytest

from rwa_lending.cli import _run, build_parser
from rwa_lending.config import AppConfig, StoreConfig


class TestBuildParser:
    def test_collateral_command(self) -> None:
        args = build_parser().parse_args(["collateral", "0xW"])
        assert args.command == "collateral"
        assert args.wallet == "0xW"

    def test_quote_command(self) -> None:
        args = build_parser().parse_args(["quote", "0xW", "asset-1", "350000"])
        assert args.command == "quote"
        assert args.asset == "asset-1"
        assert args.amount == 350000.0

    def test_borrow_defaults(self) -> None:
        args = build_parser().parse_args(
            ["borrow", "0xW", "asset-1", "1000", "--pool", "CFGE-STABLE-001"]
        )
        assert args.pool == "CFGE-STABLE-001"
        assert args.term == 90
        assert args.tx == ""

    def test_borrow_requires_pool(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["borrow", "0xW", "asset-1", "1000"])

    def test_borrow_rejects_unlisted_term(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["borrow", "0xW", "asset-1", "1000", "--pool", "P", "--term", "45"]
            )

    def test_add_asset_command(self) -> None:
        args = build_parser().parse_args(
            ["add-asset", "0xW", "Office", "Trade Finance", "250000", "--status", "tokenized"]
        )
        assert args.asset_class == "Trade Finance"
        assert args.value == 250000.0
        assert args.status == "tokenized"

    def test_risk_wallet_optional(self) -> None:
        assert build_parser().parse_args(["risk"]).wallet is None
        assert build_parser().parse_args(["risk", "0xW"]).wallet == "0xW"

    def test_watch_command_default_interval(self) -> None:
        args = build_parser().parse_args(["watch"])
        assert args.command == "watch"
        assert args.interval is None

    def test_watch_command_custom_interval(self) -> None:
        args = build_parser().parse_args(["watch", "10"])
        assert args.interval == 10

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "pools"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "pools"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        assert build_parser().parse_args([]).command is None


def _args(*argv: str) -> argparse.Namespace:
    return build_parser().parse_args(list(argv))


@pytest.fixture()
def memory_config() -> AppConfig:
    return AppConfig(store=StoreConfig(backend="memory"))


class TestRun:
    @pytest.mark.asyncio
    async def test_pools(self, memory_config: AppConfig, capsys) -> None:
        status = await _run(_args("pools"), memory_config)
        assert status == 0
        assert "CFGE-STABLE-001" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_engine_error_exits_nonzero(self, memory_config: AppConfig, capsys) -> None:
        status = await _run(_args("quote", "0xW", "missing", "1000"), memory_config)
        assert status == 1
        assert "not found" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_empty_positions(self, memory_config: AppConfig, capsys) -> None:
        status = await _run(_args("positions", "0xW"), memory_config)
        assert status == 0
        assert "No borrowing positions found." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_risk_without_wallets(self, memory_config: AppConfig, capsys) -> None:
        status = await _run(_args("risk"), memory_config)
        assert status == 1
        assert "No wallet" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_init_db_on_memory_backend(self, memory_config: AppConfig, capsys) -> None:
        status = await _run(_args("init-db"), memory_config)
        assert status == 0
        assert "Nothing to initialise" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_add_asset_then_collateral_via_file_store(self, tmp_path, capsys) -> None:
        config = AppConfig(store=StoreConfig(backend="file", path=str(tmp_path / "l.json")))
        await _run(
            _args("add-asset", "0xW", "Office", "Commercial Real Estate", "500000",
                  "--status", "tokenized"),
            config,
        )
        assert "Asset recorded" in capsys.readouterr().out

        status = await _run(_args("collateral", "0xW"), config)
        out = capsys.readouterr().out
        assert status == 0
        assert "Office" in out
        assert "$500,000.00" in out
