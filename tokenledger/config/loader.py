"""
tokenledger TOML Configuration Loader

Loads the construction-time configuration of a token from a TOML file with
environment variable overrides (dataclass + from_dict + from_file).

Environment variable mapping:
    [token] name      → TOKENLEDGER_NAME
    [token] symbol    → TOKENLEDGER_SYMBOL
    [token] decimals  → TOKENLEDGER_DECIMALS
    [token] cap       → TOKENLEDGER_CAP
    [token] authority → TOKENLEDGER_AUTHORITY

TOML integers are limited to 64 bits, so ``cap`` and ``initial_supply`` may
also be given as decimal or 0x-prefixed strings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..address import normalize_address
from ..constants import DEFAULT_DECIMALS, MAX_DECIMALS, MAX_UINT256
from ..exceptions import ConfigurationError, InvalidAddressError

logger = logging.getLogger(__name__)


def _parse_uint(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value, 0)
        except ValueError:
            raise ConfigurationError(f"{field_name} must be an integer, got {value!r}") from None
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
    return value


@dataclass
class TokenConfig:
    """[token] section."""
    name: str = ""
    symbol: str = ""
    decimals: int = DEFAULT_DECIMALS
    cap: Optional[int] = None
    authority: str = ""
    initial_supply: int = 0
    pausable: bool = True
    burnable: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenConfig":
        section = data.get("token", data)
        return cls(
            name=section.get("name", ""),
            symbol=section.get("symbol", ""),
            decimals=section.get("decimals", DEFAULT_DECIMALS),
            cap=_parse_uint(section.get("cap"), "cap"),
            authority=section.get("authority", ""),
            initial_supply=_parse_uint(section.get("initial_supply"), "initial_supply") or 0,
            pausable=section.get("pausable", True),
            burnable=section.get("burnable", True),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "TokenConfig":
        """
        Load configuration from a TOML file.

        Args:
            config_path: Path to token.toml

        Returns:
            TokenConfig instance
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("TOKENLEDGER_NAME"):
            self.name = v
        if v := os.environ.get("TOKENLEDGER_SYMBOL"):
            self.symbol = v
        if v := os.environ.get("TOKENLEDGER_DECIMALS"):
            self.decimals = _parse_uint(v, "decimals")
        if v := os.environ.get("TOKENLEDGER_CAP"):
            self.cap = _parse_uint(v, "cap")
        if v := os.environ.get("TOKENLEDGER_AUTHORITY"):
            self.authority = v

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate the configuration.

        Returns:
            True if valid

        Raises:
            ConfigurationError: on invalid config
        """
        if not self.name:
            raise ConfigurationError("Token name cannot be empty")
        if not self.symbol:
            raise ConfigurationError("Token symbol cannot be empty")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ConfigurationError(f"Decimals must be an integer, got {self.decimals!r}")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ConfigurationError(f"Decimals must be 0-{MAX_DECIMALS}, got {self.decimals}")
        if self.cap is not None and not 0 < self.cap <= MAX_UINT256:
            raise ConfigurationError(f"Cap must be in (0, 2**256 - 1], got {self.cap}")
        if not 0 <= self.initial_supply <= MAX_UINT256:
            raise ConfigurationError(f"Initial supply out of uint256 range: {self.initial_supply}")
        if self.cap is not None and self.initial_supply > self.cap:
            raise ConfigurationError(
                f"Initial supply {self.initial_supply} exceeds cap {self.cap}"
            )
        if not self.authority:
            raise ConfigurationError("Token authority must be set")
        try:
            normalize_address(self.authority)
        except InvalidAddressError as e:
            raise ConfigurationError(f"Invalid authority address: {self.authority!r}") from e
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": {
                "name": self.name,
                "symbol": self.symbol,
                "decimals": self.decimals,
                "cap": None if self.cap is None else str(self.cap),
                "authority": self.authority,
                "initial_supply": str(self.initial_supply),
                "pausable": self.pausable,
                "burnable": self.burnable,
            }
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> TokenConfig:
    """
    Load token configuration.

    Resolution order:
        1. Explicit *path* argument
        2. TOKENLEDGER_CONFIG env var
        3. ./token.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("TOKENLEDGER_CONFIG", "token.toml")

    return TokenConfig.from_file(path)
