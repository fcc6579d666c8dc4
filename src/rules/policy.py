"""Reference-order policy: which direction each reference kind must point."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from rules.errors import ConfigError


class RefKind(str, Enum):
    """Semantic kind of a checked reference."""

    FUNC = "func"
    TYPE = "type"
    RECV_TYPE = "recvtype"
    VAR = "var"
    CONST = "const"

    def __str__(self) -> str:
        return self.value


class Direction(str, Enum):
    """Where a declaration must sit relative to its references.

    ``down`` means the reference precedes its declaration (the declaration is
    further down the file); ``up`` means the declaration precedes the
    reference. ``ignore`` enforces nothing.
    """

    DOWN = "down"
    UP = "up"
    IGNORE = "ignore"

    def __str__(self) -> str:
        return self.value


REF_KINDS: tuple[RefKind, ...] = tuple(RefKind)
DIRECTIONS: tuple[Direction, ...] = tuple(Direction)

KIND_HELP: dict[RefKind, str] = {
    RefKind.FUNC: "direction of references to functions and methods",
    RefKind.TYPE: (
        "direction of type references, excluding references to the receiver type"
    ),
    RefKind.RECV_TYPE: "direction of references to the receiver type",
    RefKind.VAR: "direction of references to var declarations",
    RefKind.CONST: "direction of references to const declarations",
}

DEFAULT_ORDER: Mapping[RefKind, Direction] = MappingProxyType(
    {
        RefKind.FUNC: Direction.DOWN,
        RefKind.TYPE: Direction.DOWN,
        RefKind.RECV_TYPE: Direction.UP,
        RefKind.VAR: Direction.DOWN,
        RefKind.CONST: Direction.DOWN,
    }
)


def parse_kind(value: str) -> RefKind:
    try:
        return RefKind(value)
    except ValueError as exc:
        msg = (
            f"invalid reference kind {value!r}; "
            f"must be one of {', '.join(k.value for k in REF_KINDS)}"
        )
        raise ConfigError(msg) from exc


def parse_direction(value: str) -> Direction:
    try:
        return Direction(value)
    except ValueError as exc:
        msg = (
            f"invalid direction {value!r}; "
            f"must be {Direction.UP}, {Direction.DOWN}, or {Direction.IGNORE}"
        )
        raise ConfigError(msg) from exc


def validate_order(order: Mapping[object, object]) -> dict[RefKind, Direction]:
    """Check that an order table covers every kind and nothing else.

    Returns the table with keys and values as enum members, so plain string
    tokens compare by identity like the members they name.
    """
    normalized: dict[RefKind, Direction] = {}
    for kind, direction in order.items():
        try:
            key = RefKind(kind)
        except ValueError as exc:
            msg = f"invalid kind {kind!r} in order table"
            raise ConfigError(msg) from exc
        try:
            normalized[key] = Direction(direction)
        except ValueError as exc:
            msg = f"invalid direction {direction!r} for kind {key} in order table"
            raise ConfigError(msg) from exc
    for kind in REF_KINDS:
        if kind not in normalized:
            msg = f"ref kind {kind} missing from order table"
            raise ConfigError(msg)
    return normalized


@dataclass(frozen=True)
class OrderPolicy:
    """Immutable, complete mapping of reference kind to direction.

    Built once at startup and handed to every run; never mutated afterwards.
    """

    order: Mapping[RefKind, Direction] = field(default_factory=lambda: DEFAULT_ORDER)

    def __post_init__(self) -> None:
        normalized = validate_order(self.order)
        object.__setattr__(self, "order", MappingProxyType(normalized))

    def direction(self, kind: RefKind) -> Direction:
        return self.order[kind]

    def with_overrides(
        self, overrides: Mapping[RefKind, Direction] | None
    ) -> OrderPolicy:
        if not overrides:
            return self
        merged = dict(self.order)
        merged.update(overrides)
        return OrderPolicy(merged)

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, str],
        *,
        base: OrderPolicy | None = None,
    ) -> OrderPolicy:
        """Build a policy from a free-form ``kind -> direction`` string map."""
        parsed: dict[RefKind, Direction] = {}
        for key, value in settings.items():
            if key not in {k.value for k in REF_KINDS}:
                msg = f"invalid refdir settings key {key!r}"
                raise ConfigError(msg)
            if value not in {d.value for d in DIRECTIONS}:
                msg = f"invalid refdir direction {value!r} for settings key {key!r}"
                raise ConfigError(msg)
            parsed[RefKind(key)] = Direction(value)
        return (base or cls()).with_overrides(parsed)

    def to_settings(self) -> dict[str, str]:
        return {kind.value: self.order[kind].value for kind in REF_KINDS}


def parse_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Split ``kind:direction`` tokens into a settings map."""
    settings: dict[str, str] = {}
    for raw in pairs:
        item = raw.strip()
        if not item:
            continue
        if ":" not in item:
            msg = f"malformed refdir order entry {item!r} (expected 'kind:direction')"
            raise ConfigError(msg)
        key, value = item.split(":", 1)
        settings[key.strip()] = value.strip()
    return settings


__all__ = [
    "DEFAULT_ORDER",
    "DIRECTIONS",
    "KIND_HELP",
    "REF_KINDS",
    "Direction",
    "OrderPolicy",
    "RefKind",
    "parse_direction",
    "parse_kind",
    "parse_pairs",
    "validate_order",
]
