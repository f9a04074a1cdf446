# asyncicq

The host side of asynchronous interchain queries (ICQ). A host accepts a
channel on its port (`icqhost` by default), receives packets that carry a
batch of queries, checks each query against an allow-list, runs the allowed
ones through a query router and answers with an acknowledgement that holds
the responses.

The package has no dependencies outside the standard library.

## Modules

- `asyncicq.types`: constants (`MODULE_NAME`, `PORT_ID`, `VERSION`,
  `PARAMS_KEY`, `PORT_KEY`, event names), `Params` (host enabled flag and
  allowed query paths), `GenesisState`, `default_params()`,
  `default_genesis()`, `contains_query_path()` and
  `validate_port_identifier()`.
- `asyncicq.codec`: `RequestQuery`, `ResponseQuery`,
  `InterchainQueryPacketData`, `InterchainQueryPacketAck`, the binary
  helpers `serialize_cosmos_query()`, `deserialize_cosmos_query()`,
  `serialize_cosmos_response()`, `deserialize_cosmos_response()`, and
  `encode_params()` / `decode_params()`.
- `asyncicq.msgs`: `MsgUpdateParams`, the governance message that replaces
  the parameters, and `bech32_decode()`, used to check its authority
  address (the `cosmos` prefix is required).
- `asyncicq.context`: `Context`, `KVStore` (in memory, branchable),
  `GasMeter`, `Event`, `EventManager`, `OutOfGasError`, `GasOverflowError`
  and `apply_func_if_no_error()`, which runs a function on a branch of the
  store and keeps its changes and events only if it succeeds.
- `asyncicq.channel`: `Order`, `Counterparty`, `Packet`, `Acknowledgement`,
  `Capability`, `port_path()`, `channel_capability_path()` and the
  `ICS4Wrapper`, `ChannelKeeper`, `PortKeeper` and `ScopedKeeper` protocols
  the host relies on.
- `asyncicq.keeper`: `Keeper`, `QueryRouter`, `MsgServer` and
  `emit_write_error_acknowledgement_event()`.
- `asyncicq.ibc_module`: `IBCModule`, the channel and packet callbacks, and
  `validate_icq_channel_params()`.
- `asyncicq.migrations`: `Subspace`, `migrate()` and `Migrator`, which move
  parameters from a legacy subspace into module state.
- `asyncicq.module`: `AppModuleBasic` and `AppModule` (genesis as JSON
  bytes, module initialization, migrations, consensus version 2).
- `asyncicq.errors`: `ICQError` and its subclasses.

## Example

```python
from asyncicq.channel import Packet
from asyncicq.codec import (
    InterchainQueryPacketAck,
    InterchainQueryPacketData,
    RequestQuery,
    ResponseQuery,
    deserialize_cosmos_response,
    serialize_cosmos_query,
)
from asyncicq.context import Context
from asyncicq.ibc_module import IBCModule
from asyncicq.keeper import Keeper, QueryRouter
from asyncicq.types import Params

router = QueryRouter({"/bank/balance": lambda ctx, req: ResponseQuery(value=b"100")})
keeper = Keeper(None, None, None, None, router, authority="gov")
ctx = Context()
keeper.set_params(ctx, Params(host_enabled=True, allow_queries=["/bank/balance"]))

payload = InterchainQueryPacketData(
    data=serialize_cosmos_query([RequestQuery(path="/bank/balance")])
).get_bytes()
packet = Packet(payload, 1, "querier", "channel-0", "icqhost", "channel-0")

ack = IBCModule(keeper).on_recv_packet(ctx, packet, relayer=None)
assert ack.success()
responses = deserialize_cosmos_response(InterchainQueryPacketAck.from_json(ack.result_data).data)
assert responses[0].value == b"100"
```

The port, channel and scoped keepers are only used for port binding and
capabilities; pass objects that follow the protocols in `asyncicq.channel`
when you use those parts.

## Behaviour

- Channels must be unordered, use the port stored by the keeper, and use
  version `icq-1`; an empty version on init defaults to `icq-1`. Every
  handshake step fails with `HostDisabledError` while the host is disabled.
- `on_chan_close_init` always fails: users cannot close the channel. A host
  never sends packets, so `on_acknowledgement_packet` and
  `on_timeout_packet` fail with `InvalidChannelFlowError`.
- A query runs only if its path is in `allow_queries`, its height is `0` or
  the context's block height, and it asks for no proof; otherwise
  `UnauthorizedError` is raised. A path with no route is also refused.
- Only the deterministic fields of a response (code, index, key, value,
  height) go into the acknowledgement.
- `IBCModule.on_recv_packet` turns a failure into an error acknowledgement
  (`"ABCI code: <code>: error handling packet: see events for details"`)
  and emits an `icq_packet_error` event; gas errors are re-raised.
- With no parameters stored, `Keeper.get_params` returns `Params()`, whose
  host flag is `False`; `default_params()` has it `True`.

## Errors

Module errors are subclasses of `asyncicq.errors.ICQError`, each with a
`codespace`, `code` and `description`. Parameter, address and port
validation raise `ValueError` or `TypeError`. `Keeper.init_genesis` and
`AppModule.init_module` wrap failures in `RuntimeError`, and
`apply_func_if_no_error` reports unexpected exceptions as
`RuntimeError("panic occurred during execution")`.

## What the package does not do

It is a library only: there is no command-line tool, no network transport or
relayer, no gRPC or REST service, and no persistent storage; state lives in
the in-memory `KVStore` of a `Context`. It ships no query handlers: every
answerable path must be registered on a `QueryRouter`.

## Tests

```
pip install -e ".[test]"
pytest
```