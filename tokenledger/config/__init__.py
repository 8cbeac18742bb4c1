"""
tokenledger Configuration

Loads the [token] section of token.toml.
Environment variables override TOML values.
"""

from .loader import (
    TokenConfig,
    load_config,
)

__all__ = [
    "TokenConfig",
    "load_config",
]
