"""TOML config loader with environment variable overrides."""

from __future__ import annotations

import os

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]
from pathlib import Path
from typing import Any

ENV_PREFIX = "UPDOWN"
SUPPORTED_ASSETS = ("btc", "eth", "sol", "xrp")


class ConfigError(Exception):
    """Raised when config loading or validation fails."""


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Apply environment variable overrides.

    Env var naming: UPDOWN__section__key=value (double underscore separator).
    Nested keys: UPDOWN__risk__max_daily_loss=25
    """
    result = dict(config)
    env_prefix = f"{prefix}__"

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        parts = env_key[len(env_prefix) :].lower().split("__")
        target = result
        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            elif isinstance(target[part], dict):
                target[part] = dict(target[part])
            if isinstance(target[part], dict):
                target = target[part]
            else:
                break
        else:
            final_key = parts[-1]
            target[final_key] = _coerce_value(env_value)

    return result


def _coerce_value(value: str) -> Any:
    """Coerce string env var value to appropriate Python type.

    Numeric conversion is attempted BEFORE boolean to avoid "0"/"1"
    being interpreted as False/True when they should be integers.
    """
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    return value


class ConfigLoader:
    """Load and merge TOML config files with env var overrides."""

    def __init__(
        self,
        config_dir: str | Path = "config",
        env: str | None = None,
    ) -> None:
        self._config_dir = Path(config_dir)
        self._env = env or os.environ.get("UPDOWN_ENV", "development")
        self._config: dict[str, Any] = {}

    @property
    def env(self) -> str:
        return self._env

    def load(self) -> dict[str, Any]:
        """Load config: default.toml → {env}.toml → env vars."""
        default_path = self._config_dir / "default.toml"
        if not default_path.exists():
            msg = f"Default config not found: {default_path}"
            raise ConfigError(msg)

        self._config = self._load_toml(default_path)

        env_path = self._config_dir / f"{self._env}.toml"
        if env_path.exists():
            env_config = self._load_toml(env_path)
            self._config = _deep_merge(self._config, env_config)

        self._config = _apply_env_overrides(self._config)
        return self._config

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a config value using dotted notation: 'risk.max_daily_loss'."""
        if not self._config:
            self.load()

        parts = dotted_key.split(".")
        current: Any = self._config
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def require(self, dotted_key: str) -> Any:
        """Get a config value, raising ConfigError if missing."""
        value = self.get(dotted_key)
        if value is None:
            msg = f"Required config key missing: {dotted_key}"
            raise ConfigError(msg)
        return value

    def validate_keys(self, required_keys: list[str]) -> None:
        """Validate that all required keys exist."""
        missing = [k for k in required_keys if self.get(k) is None]
        if missing:
            msg = f"Missing required config keys: {', '.join(missing)}"
            raise ConfigError(msg)

    def validate_ranges(self) -> None:
        """Validate config value ranges for safety-critical parameters.

        Raises:
            ConfigError: If any strategy/risk parameter is out of valid range.
        """
        if not self._config:
            self.load()

        errors: list[str] = []

        asset = self.get("strategy.asset")
        if asset is not None and str(asset).lower() not in SUPPORTED_ASSETS:
            errors.append(
                f"strategy.asset must be one of {', '.join(SUPPORTED_ASSETS)}, got {asset}"
            )

        for key in (
            "strategy.momentum_threshold_pct",
            "strategy.momentum_window_seconds",
            "strategy.main_bet_size",
            "hedge.bet_size",
        ):
            value = self.get(key)
            if value is not None and value <= 0:
                errors.append(f"{key} must be > 0, got {value}")

        for key in ("strategy.cooldown_seconds", "risk.no_trade_last_minutes"):
            value = self.get(key)
            if value is not None and value < 0:
                errors.append(f"{key} must be >= 0, got {value}")

        hedge_threshold = self.get("hedge.price_threshold")
        if hedge_threshold is not None and not (0 < hedge_threshold < 1):
            errors.append(f"hedge.price_threshold must be in (0, 1), got {hedge_threshold}")

        max_bets = self.get("risk.max_bets_per_market")
        if max_bets is not None and max_bets < 1:
            errors.append(f"risk.max_bets_per_market must be >= 1, got {max_bets}")

        max_loss = self.get("risk.max_daily_loss")
        if max_loss is not None and max_loss <= 0:
            errors.append(f"risk.max_daily_loss must be > 0, got {max_loss}")

        max_losses = self.get("risk.max_consecutive_losses")
        if max_losses is not None and max_losses < 1:
            errors.append(f"risk.max_consecutive_losses must be >= 1, got {max_losses}")

        if errors:
            msg = "Config validation failed:\n  " + "\n  ".join(errors)
            raise ConfigError(msg)

    @property
    def config(self) -> dict[str, Any]:
        if not self._config:
            self.load()
        return self._config

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return tomllib.load(f)
