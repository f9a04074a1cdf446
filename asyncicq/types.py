"""Keys, events, parameters and genesis state of the interchain query host."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

MODULE_NAME = "interchainquery"
PORT_ID = "icqhost"
VERSION = "icq-1"
STORE_KEY = MODULE_NAME
ROUTER_KEY = MODULE_NAME
QUERIER_ROUTE = MODULE_NAME

PARAMS_KEY = b"\x00"
PORT_KEY = b"\x01"

EVENT_TYPE_PACKET_ERROR = "icq_packet_error"
ATTRIBUTE_KEY_ACK_ERROR = "error"
ATTRIBUTE_KEY_HOST_CHANNEL_ID = "host_channel_id"

DEFAULT_HOST_ENABLED = True

KEY_HOST_ENABLED = b"HostEnabled"
KEY_ALLOW_QUERIES = b"AllowQueries"

_PORT_RE = re.compile(r"^[a-zA-Z0-9._+\-#\[\]<>]+$")


def contains_query_path(allow_queries, path) -> bool:
    """Return True if path is one of allow_queries."""
    return path in (allow_queries or ())


def validate_port_identifier(port_id) -> None:
    """Validate a port identifier; raise ValueError when it is invalid."""
    if not isinstance(port_id, str) or not port_id.strip():
        raise ValueError("identifier cannot be blank")
    if "/" in port_id:
        raise ValueError(f"identifier {port_id} cannot contain separator '/'")
    if not 2 <= len(port_id) <= 128:
        raise ValueError(
            f"identifier {port_id} has invalid length: {len(port_id)}, must be between 2-128 characters"
        )
    if not _PORT_RE.match(port_id):
        raise ValueError(f"identifier {port_id} must contain only alphanumeric or the following characters: '.', '_', '+', '-', '#', '[', ']', '<', '>'")


def _validate_enabled(value: Any) -> None:
    if not isinstance(value, bool):
        raise TypeError(f"invalid parameter type: {type(value).__name__}")


def _validate_allowlist(value: Any) -> None:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"invalid parameter type: {type(value).__name__}")
    if any(not path.strip() for path in value):
        raise ValueError(f"parameter must not contain empty strings: {list(value)}")


@dataclass
class Params:
    """Host parameters: whether the host is enabled and which query paths are allowed."""

    host_enabled: bool = False
    allow_queries: list[str] = field(default_factory=list)

    def validate(self) -> None:
        _validate_enabled(self.host_enabled)
        _validate_allowlist(self.allow_queries)

    def param_set_pairs(self) -> list[tuple[bytes, Any, Callable[[Any], None]]]:
        return [
            (KEY_HOST_ENABLED, self.host_enabled, _validate_enabled),
            (KEY_ALLOW_QUERIES, self.allow_queries, _validate_allowlist),
        ]

    def to_dict(self) -> dict:
        return {"host_enabled": self.host_enabled, "allow_queries": list(self.allow_queries)}

    @classmethod
    def from_dict(cls, data) -> "Params":
        return cls(
            host_enabled=data.get("host_enabled", False),
            allow_queries=list(data.get("allow_queries") or []),
        )


def default_params() -> Params:
    return Params(host_enabled=DEFAULT_HOST_ENABLED, allow_queries=[])


@dataclass
class GenesisState:
    """Genesis state: the host port and the parameters."""

    host_port: str = ""
    params: Params = field(default_factory=Params)

    def validate(self) -> None:
        validate_port_identifier(self.host_port)
        self.params.validate()

    def to_dict(self) -> dict:
        return {"host_port": self.host_port, "params": self.params.to_dict()}

    @classmethod
    def from_dict(cls, data) -> "GenesisState":
        return cls(
            host_port=data.get("host_port", ""),
            params=Params.from_dict(data.get("params") or {}),
        )


def default_genesis() -> GenesisState:
    return GenesisState(host_port=PORT_ID, params=default_params())