"""Rule configuration for refdir."""

from rules.config import (
    ConfigError,
    OrderConfig,
    RefdirConfig,
    load_config,
)
from rules.policy import (
    DEFAULT_ORDER,
    Direction,
    OrderPolicy,
    RefKind,
)

__all__ = [
    "DEFAULT_ORDER",
    "ConfigError",
    "Direction",
    "OrderConfig",
    "OrderPolicy",
    "RefKind",
    "RefdirConfig",
    "load_config",
]
