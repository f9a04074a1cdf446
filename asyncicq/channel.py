"""Channel, packet and capability types, and the keepers the host depends on."""

from __future__ import annotations

import base64
import enum
import json
from dataclasses import dataclass
from typing import Protocol

ACK_ERROR_STRING = "error handling packet: see events for details"


class Order(enum.IntEnum):
    NONE = 0
    UNORDERED = 1
    ORDERED = 2

    def __str__(self) -> str:
        return {0: "ORDER_NONE_UNSPECIFIED", 1: "ORDER_UNORDERED", 2: "ORDER_ORDERED"}[self.value]


@dataclass(frozen=True)
class Counterparty:
    port_id: str
    channel_id: str = ""


@dataclass
class Packet:
    data: bytes
    sequence: int
    source_port: str
    source_channel: str
    destination_port: str
    destination_channel: str
    timeout_height: tuple[int, int] = (0, 0)
    timeout_timestamp: int = 0


@dataclass(frozen=True)
class Acknowledgement:
    """A result or an error acknowledgement."""

    result_data: bytes | None = None
    error_message: str | None = None

    @classmethod
    def result(cls, data) -> "Acknowledgement":
        return cls(result_data=bytes(data))

    @classmethod
    def error(cls, err) -> "Acknowledgement":
        code = getattr(err, "code", 1)
        return cls(error_message=f"ABCI code: {code}: {ACK_ERROR_STRING}")

    def success(self) -> bool:
        return self.error_message is None

    def acknowledgement(self) -> bytes:
        if self.success():
            body = {"result": base64.b64encode(self.result_data or b"").decode()}
        else:
            body = {"error": self.error_message}
        return json.dumps(body, sort_keys=True, separators=(",", ":")).encode()


@dataclass(frozen=True)
class Capability:
    index: int


def port_path(port_id) -> str:
    return f"ports/{port_id}"


def channel_capability_path(port_id, channel_id) -> str:
    return f"capabilities/ports/{port_id}/channels/{channel_id}"


class ICS4Wrapper(Protocol):
    def send_packet(self, ctx, channel_cap, source_port, source_channel,
                    timeout_height, timeout_timestamp, data) -> int: ...

    def get_app_version(self, ctx, port_id, channel_id) -> str | None: ...


class ChannelKeeper(Protocol):
    def get_channel(self, ctx, src_port, src_chan): ...

    def get_next_sequence_send(self, ctx, port_id, channel_id) -> int | None: ...

    def get_connection(self, ctx, connection_id): ...


class PortKeeper(Protocol):
    def bind_port(self, ctx, port_id) -> Capability: ...

    def is_bound(self, ctx, port_id) -> bool: ...


class ScopedKeeper(Protocol):
    def get_capability(self, ctx, name) -> Capability | None: ...

    def authenticate_capability(self, ctx, cap, name) -> bool: ...

    def claim_capability(self, ctx, cap, name) -> None: ...