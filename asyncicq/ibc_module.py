"""Channel handshake and packet callbacks of the interchain query host."""

from __future__ import annotations

from .channel import Acknowledgement, Order, channel_capability_path
from .context import GasOverflowError, OutOfGasError
from .errors import (
    HostDisabledError,
    InvalidChannelFlowError,
    InvalidChannelOrderingError,
    InvalidHostPortError,
    InvalidRequestError,
    InvalidVersionError,
)
from .keeper import emit_write_error_acknowledgement_event
from .types import VERSION

_NO_OUTGOING_PACKETS = "a host chain does not send a packet over the channel"


def _reject_flow(action: str) -> None:
    message = f"{action} on a host channel end, {_NO_OUTGOING_PACKETS}"
    raise InvalidChannelFlowError(message)


def _reject_request(reason: str) -> None:
    message = reason.strip()
    raise InvalidRequestError(message)


def validate_icq_channel_params(ctx, keeper, order, port_id, channel_id) -> None:
    """Check that the channel is unordered and uses the bound host port."""
    if order != Order.UNORDERED:
        raise InvalidChannelOrderingError(
            f"expected {Order.UNORDERED} channel, got {Order(order)}"
        )
    bound_port = keeper.get_port(ctx)
    if port_id != bound_port:
        raise InvalidHostPortError(f"expected {bound_port}, got {port_id}")


class IBCModule:
    """Callbacks for the host end of an interchain query channel."""

    def __init__(self, keeper) -> None:
        self.keeper = keeper
        self.closed_channels: set[str] = set()

    def _require_host_enabled(self, ctx) -> None:
        if not self.keeper.is_host_enabled(ctx):
            raise HostDisabledError()

    def on_chan_open_init(self, ctx, order, connection_hops, port_id, channel_id,
                          chan_cap, counterparty, version) -> str:
        self._require_host_enabled(ctx)
        validate_icq_channel_params(ctx, self.keeper, order, port_id, channel_id)
        if not version.strip():
            version = VERSION
        if version != VERSION:
            raise InvalidVersionError(f"got {version}, expected {VERSION}")
        self.keeper.claim_capability(ctx, chan_cap, channel_capability_path(port_id, channel_id))
        return version

    def on_chan_open_try(self, ctx, order, connection_hops, port_id, channel_id,
                         chan_cap, counterparty, counterparty_version) -> str:
        self._require_host_enabled(ctx)
        validate_icq_channel_params(ctx, self.keeper, order, port_id, channel_id)
        if counterparty_version != VERSION:
            raise InvalidVersionError(f"got {counterparty_version}, expected {VERSION}")
        path = channel_capability_path(port_id, channel_id)
        # With crossing hellos the capability may already be owned from the init step.
        if not self.keeper.authenticate_capability(ctx, chan_cap, path):
            self.keeper.claim_capability(ctx, chan_cap, path)
        return VERSION

    def on_chan_open_ack(self, ctx, port_id, channel_id, counterparty_channel_id,
                         counterparty_version) -> None:
        self._require_host_enabled(ctx)
        if counterparty_version != VERSION:
            raise InvalidVersionError(f"got {counterparty_version}, expected {VERSION}")

    def on_chan_open_confirm(self, ctx, port_id, channel_id) -> None:
        self._require_host_enabled(ctx)

    def on_chan_close_init(self, ctx, port_id, channel_id) -> None:
        """Refuse closing: users may not close host channels."""
        _reject_request("user cannot close channel")

    def on_chan_close_confirm(self, ctx, port_id, channel_id) -> None:
        """Record that the counterparty closed the channel."""
        self.closed_channels.add(channel_capability_path(port_id, channel_id))

    def on_recv_packet(self, ctx, packet, relayer) -> Acknowledgement:
        if not self.keeper.is_host_enabled(ctx):
            return Acknowledgement.error(HostDisabledError())
        try:
            response = self.keeper.on_recv_packet(ctx, packet)
        except (OutOfGasError, GasOverflowError):
            raise
        except Exception as err:
            emit_write_error_acknowledgement_event(ctx, packet, err)
            return Acknowledgement.error(err)
        return Acknowledgement.result(response)

    def on_acknowledgement_packet(self, ctx, packet, acknowledgement, relayer) -> None:
        """Refuse acknowledgements: the host never sends packets."""
        _reject_flow("cannot receive acknowledgement")

    def on_timeout_packet(self, ctx, packet, relayer) -> None:
        """Refuse timeouts: the host never sends packets."""
        _reject_flow("cannot cause a packet timeout")