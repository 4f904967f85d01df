"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import AssetClass, RiskTier
from .risk import (
    DEFAULT_INTEREST_RATES,
    DEFAULT_MAX_LTV,
    DEFAULT_TIER_LIMITS,
    RiskParameters,
)

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("memory", "file", "postgres")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "file"
    path: str = "data/ledger.json"
    dsn: str = ""
    timeout_seconds: float = 10.0
    pool_min_size: int = 1
    pool_max_size: int = 5


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    address: str = ""


@dataclass(frozen=True)
class PoolConfig:
    pool_id: str = ""
    name: str = ""
    description: str = ""
    apy: float = 0.0


DEFAULT_POOLS: tuple[PoolConfig, ...] = (
    PoolConfig("CFGE-STABLE-001", "Centrifuge Stable Pool", "Stable-yield liquidity", 5.5),
    PoolConfig("CFGE-TRADE-002", "Trade Finance Pool", "Trade finance liquidity", 8.5),
    PoolConfig("CFGE-REALESTATE-003", "Real Estate Pool", "Real estate liquidity", 7.2),
)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    store: StoreConfig = field(default_factory=StoreConfig)
    risk: RiskParameters = field(default_factory=RiskParameters)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    wallets: tuple[WalletConfig, ...] = ()
    pools: tuple[PoolConfig, ...] = DEFAULT_POOLS
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_store(raw: dict[str, Any]) -> StoreConfig:
    return StoreConfig(
        backend=str(raw.get("backend", "file")).lower(),
        path=raw.get("path", StoreConfig.path),
        dsn=raw.get("dsn", ""),
        timeout_seconds=float(raw.get("timeout_seconds", 10.0)),
        pool_min_size=int(raw.get("pool_min_size", 1)),
        pool_max_size=int(raw.get("pool_max_size", 5)),
    )


def _build_risk(raw: dict[str, Any]) -> RiskParameters:
    """Merge partial overrides over the default risk table."""
    max_ltv = dict(DEFAULT_MAX_LTV)
    for label, value in raw.get("max_ltv", {}).items():
        max_ltv[AssetClass.parse(label)] = float(value)

    rates = dict(DEFAULT_INTEREST_RATES)
    for tier, value in raw.get("interest_rates", {}).items():
        rates[RiskTier(tier)] = float(value)

    limits = dict(DEFAULT_TIER_LIMITS)
    for tier, value in raw.get("tier_limits", {}).items():
        limits[RiskTier(tier)] = float(value)

    return RiskParameters(
        max_ltv_by_class=max_ltv,
        interest_rates=rates,
        tier_limits=limits,
        liquidation_buffer=float(raw.get("liquidation_buffer", 0.05)),
        default_max_ltv=float(raw.get("default_max_ltv", 0.50)),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
    )


def _build_wallets(raw: list[dict[str, Any]]) -> tuple[WalletConfig, ...]:
    wallets: list[WalletConfig] = []
    for w in raw:
        wallets.append(
            WalletConfig(
                label=w.get("label", ""),
                address=w.get("address", ""),
            )
        )
    return tuple(wallets)


def _build_pools(raw: dict[str, Any] | None) -> tuple[PoolConfig, ...]:
    if raw is None:
        return DEFAULT_POOLS
    pools: list[PoolConfig] = []
    for pool_id, cfg in raw.items():
        cfg = cfg or {}
        pools.append(
            PoolConfig(
                pool_id=str(pool_id),
                name=cfg.get("name", str(pool_id)),
                description=cfg.get("description", ""),
                apy=float(cfg.get("apy", 0.0)),
            )
        )
    return tuple(pools)


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram") or {}
    em = raw.get("email") or {}
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    try:
        risk = _build_risk(raw.get("risk") or {})
    except ValueError as e:
        raise ValueError(f"Invalid risk configuration: {e}") from e

    cfg = AppConfig(
        store=_build_store(raw.get("store") or {}),
        risk=risk,
        monitor=_build_monitor(raw.get("monitor") or {}),
        wallets=_build_wallets(raw.get("wallets") or []),
        pools=_build_pools(raw.get("pools")),
        notifications=_build_notifications(raw.get("notifications") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    store = cfg.store
    if store.backend not in STORE_BACKENDS:
        raise ValueError(
            f"Unknown store backend '{store.backend}' (expected one of {', '.join(STORE_BACKENDS)})"
        )
    if store.backend == "file" and not store.path:
        raise ValueError("File store requires store.path")
    if store.backend == "postgres" and not store.dsn:
        raise ValueError("Postgres store requires store.dsn")
    if store.timeout_seconds <= 0:
        raise ValueError("store.timeout_seconds must be positive")

    risk = cfg.risk
    for asset_class, ltv in risk.max_ltv_by_class.items():
        if not 0 < ltv <= 1:
            raise ValueError(f"Max LTV for '{asset_class.value}' must be in (0, 1]")
    if not 0 < risk.default_max_ltv <= 1:
        raise ValueError("risk.default_max_ltv must be in (0, 1]")
    if risk.liquidation_buffer < 0:
        raise ValueError("risk.liquidation_buffer must not be negative")
    for tier, rate in risk.interest_rates.items():
        if rate < 0:
            raise ValueError(f"Interest rate for '{tier.value}' must not be negative")
    if risk.tier_limits[RiskTier.LOW] > risk.tier_limits[RiskTier.MEDIUM]:
        raise ValueError("risk.tier_limits.low_risk must not exceed medium_risk")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")

    seen: set[str] = set()
    for pool in cfg.pools:
        if not pool.pool_id:
            raise ValueError("Pool entries need an id")
        if pool.pool_id in seen:
            raise ValueError(f"Duplicate pool '{pool.pool_id}'")
        seen.add(pool.pool_id)
