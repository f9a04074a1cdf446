"""Host keeper: port binding, parameters, genesis and execution of incoming queries."""

from __future__ import annotations

import logging
from typing import Callable

from .channel import Packet, port_path
from .codec import (
    InterchainQueryPacketAck,
    InterchainQueryPacketData,
    RequestQuery,
    ResponseQuery,
    decode_params,
    deserialize_cosmos_query,
    encode_params,
    serialize_cosmos_response,
)
from .context import Context, Event, apply_func_if_no_error
from .errors import InvalidSignerError, UnauthorizedError, UnknownDataTypeError
from .types import (
    ATTRIBUTE_KEY_ACK_ERROR,
    ATTRIBUTE_KEY_HOST_CHANNEL_ID,
    EVENT_TYPE_PACKET_ERROR,
    MODULE_NAME,
    PARAMS_KEY,
    PORT_KEY,
    GenesisState,
    Params,
    contains_query_path,
)

IBC_MODULE_NAME = "ibc"
ATTRIBUTE_KEY_MODULE = "module"

QueryHandler = Callable[[Context, RequestQuery], ResponseQuery]


class QueryRouter:
    """Maps query paths to the handlers that answer them."""

    def __init__(self, handlers: dict[str, QueryHandler] | None = None) -> None:
        self._handlers: dict[str, QueryHandler] = dict(handlers or {})

    def register(self, path: str, handler: QueryHandler) -> None:
        if path in self._handlers:
            raise ValueError(f"query route already registered: {path}")
        self._handlers[path] = handler

    def route(self, path) -> QueryHandler | None:
        return self._handlers.get(path)


def emit_write_error_acknowledgement_event(ctx, packet, err) -> None:
    """Emit an event signalling an error acknowledgement with the error details."""
    ctx.event_manager.emit_event(
        Event(
            EVENT_TYPE_PACKET_ERROR,
            (
                (ATTRIBUTE_KEY_MODULE, MODULE_NAME),
                (ATTRIBUTE_KEY_ACK_ERROR, str(err)),
                (ATTRIBUTE_KEY_HOST_CHANNEL_ID, packet.destination_channel),
            ),
        )
    )


class Keeper:
    """State keeper of the interchain query host."""

    def __init__(self, ics4_wrapper, channel_keeper, port_keeper, scoped_keeper,
                 query_router: QueryRouter, authority: str) -> None:
        self.ics4_wrapper = ics4_wrapper
        self.channel_keeper = channel_keeper
        self.port_keeper = port_keeper
        self.scoped_keeper = scoped_keeper
        self.query_router = query_router
        self.authority = authority

    def logger(self, ctx) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(
            ctx.logger, {"module": f"x/{IBC_MODULE_NAME}-{MODULE_NAME}"}
        )

    # Ports and capabilities

    def bind_port(self, ctx, port_id) -> None:
        capability = self.port_keeper.bind_port(ctx, port_id)
        self.claim_capability(ctx, capability, port_path(port_id))

    def is_bound(self, ctx, port_id) -> bool:
        return self.scoped_keeper.get_capability(ctx, port_path(port_id)) is not None

    def get_port(self, ctx) -> str:
        value = ctx.store.get(PORT_KEY)
        return value.decode() if value is not None else ""

    def set_port(self, ctx, port_id) -> None:
        ctx.store.set(PORT_KEY, port_id.encode())

    def authenticate_capability(self, ctx, cap, name) -> bool:
        return self.scoped_keeper.authenticate_capability(ctx, cap, name)

    def claim_capability(self, ctx, cap, name) -> None:
        self.scoped_keeper.claim_capability(ctx, cap, name)

    def get_app_version(self, ctx, port_id, channel_id) -> str | None:
        return self.ics4_wrapper.get_app_version(ctx, port_id, channel_id)

    # Parameters

    def is_host_enabled(self, ctx) -> bool:
        return self.get_params(ctx).host_enabled

    def get_allow_queries(self, ctx) -> list[str]:
        return self.get_params(ctx).allow_queries

    def set_params(self, ctx, params) -> None:
        params.validate()
        ctx.store.set(PARAMS_KEY, encode_params(params))

    def get_params(self, ctx) -> Params:
        raw = ctx.store.get(PARAMS_KEY)
        if raw is None:
            return Params()
        return decode_params(raw)

    # Genesis

    def init_genesis(self, ctx, state) -> None:
        self.set_port(ctx, state.host_port)
        # The port capability may already be owned from the capability genesis.
        if not self.is_bound(ctx, state.host_port):
            try:
                self.bind_port(ctx, state.host_port)
            except Exception as exc:
                raise RuntimeError(f"could not claim port capability: {exc}") from exc
        try:
            self.set_params(ctx, state.params)
        except Exception as exc:
            raise RuntimeError(f"could not set params: {exc}") from exc

    def export_genesis(self, ctx) -> GenesisState:
        return GenesisState(host_port=self.get_port(ctx), params=self.get_params(ctx))

    def query_params(self, ctx) -> Params:
        return self.get_params(ctx)

    # Relay

    def on_recv_packet(self, ctx, packet: Packet) -> bytes:
        """Execute the queries in a packet and return the JSON acknowledgement bytes."""
        try:
            data = InterchainQueryPacketData.from_json(packet.data)
        except ValueError as exc:
            raise UnknownDataTypeError("cannot unmarshal ICQ packet data") from exc

        reqs = deserialize_cosmos_query(data.data)
        return apply_func_if_no_error(ctx, lambda cache_ctx: self._execute_query(cache_ctx, reqs))

    def _execute_query(self, ctx, reqs) -> bytes:
        resps = []
        for req in reqs:
            self._authenticate_query(ctx, req)
            handler = self.query_router.route(req.path)
            if handler is None:
                raise UnauthorizedError(f"no route found for: {req.path}")
            resp = handler(ctx, RequestQuery(data=req.data, path=req.path))
            # Only deterministic fields are kept.
            resps.append(
                ResponseQuery(
                    code=resp.code,
                    index=resp.index,
                    key=resp.key,
                    value=resp.value,
                    height=resp.height,
                )
            )
        ack = InterchainQueryPacketAck(data=serialize_cosmos_response(resps))
        return ack.to_json()

    def _authenticate_query(self, ctx, req: RequestQuery) -> None:
        if not contains_query_path(self.get_allow_queries(ctx), req.path):
            raise UnauthorizedError(f"query path not allowed: {req.path}")
        if req.height not in (0, ctx.block_height):
            raise UnauthorizedError(f"query height not allowed: {req.height}")
        if req.prove:
            raise UnauthorizedError("query proof not allowed")


class MsgServer:
    """Handles governance messages for the host."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def update_params(self, ctx, msg) -> None:
        if self.keeper.authority != msg.authority:
            raise InvalidSignerError(
                f"invalid authority; expected {self.keeper.authority}, got {msg.authority}"
            )
        self.keeper.set_params(ctx, msg.params)