from __future__ import annotations

from typing import TYPE_CHECKING

import tomllib
from pydantic import BaseModel, ConfigDict, Field

from rules.errors import ConfigError
from rules.policy import DEFAULT_ORDER, Direction, OrderPolicy, RefKind

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_FILENAME = "refdir.toml"


class OrderConfig(BaseModel):
    """Per-kind direction overrides from the ``[order]`` table."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    func: Direction = Field(
        default=DEFAULT_ORDER[RefKind.FUNC],
        description="Direction of references to functions and methods",
    )
    type_: Direction = Field(
        default=DEFAULT_ORDER[RefKind.TYPE],
        alias="type",
        description="Direction of type references, excluding the receiver type",
    )
    recvtype: Direction = Field(
        default=DEFAULT_ORDER[RefKind.RECV_TYPE],
        description="Direction of references to the receiver type",
    )
    var: Direction = Field(
        default=DEFAULT_ORDER[RefKind.VAR],
        description="Direction of references to module-level variables",
    )
    const: Direction = Field(
        default=DEFAULT_ORDER[RefKind.CONST],
        description="Direction of references to module-level constants",
    )

    def to_policy(self) -> OrderPolicy:
        return OrderPolicy(
            {
                RefKind.FUNC: self.func,
                RefKind.TYPE: self.type_,
                RefKind.RECV_TYPE: self.recvtype,
                RefKind.VAR: self.var,
                RefKind.CONST: self.const,
            }
        )


class RefdirConfig(BaseModel):
    """Configuration for a refdir run."""

    model_config = ConfigDict(extra="forbid")

    verbose: bool = Field(default=False, description="Print all details")
    color: bool = Field(default=True, description="Colorize terminal output")
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all Python files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    order: OrderConfig = Field(
        default_factory=OrderConfig,
        description="Reference direction per kind",
    )


def load_config(root: Path) -> RefdirConfig:
    """Load configuration from refdir.toml if it exists."""
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        return RefdirConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return RefdirConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "OrderConfig",
    "RefdirConfig",
    "load_config",
]
