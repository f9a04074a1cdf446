import pytest

from asyncicq.channel import Capability, Packet, port_path
from asyncicq.codec import (
    InterchainQueryPacketAck,
    InterchainQueryPacketData,
    RequestQuery,
    ResponseQuery,
    deserialize_cosmos_response,
    serialize_cosmos_query,
)
from asyncicq.context import Context, Event, GasMeter, OutOfGasError
from asyncicq.errors import InvalidSignerError, UnauthorizedError, UnknownDataTypeError
from asyncicq.keeper import (
    Keeper,
    MsgServer,
    QueryRouter,
    emit_write_error_acknowledgement_event,
)
from asyncicq.msgs import MsgUpdateParams
from asyncicq.types import (
    PARAMS_KEY,
    PORT_ID,
    GenesisState,
    Params,
    default_genesis,
    default_params,
)

TEST_PORT = "icq-test"
BANK_PATH = "/cosmos.bank.v1beta1.Query/AllBalances"
GOV_AUTHORITY = "cosmos10d07y265gmmuvt4z0w9aw880jnsr700j6zn9kn"


class FakePortKeeper:
    def __init__(self):
        self.bound = set()
        self._next = 1

    def bind_port(self, ctx, port_id):
        if port_id in self.bound:
            raise ValueError(f"port {port_id} is already bound")
        self.bound.add(port_id)
        cap = Capability(self._next)
        self._next += 1
        return cap

    def is_bound(self, ctx, port_id):
        return port_id in self.bound


class FakeScopedKeeper:
    def __init__(self):
        self.owned = {}

    def get_capability(self, ctx, name):
        return self.owned.get(name)

    def authenticate_capability(self, ctx, cap, name):
        return self.owned.get(name) == cap

    def claim_capability(self, ctx, cap, name):
        if name in self.owned:
            raise ValueError("capability already claimed")
        self.owned[name] = cap


class FakeICS4Wrapper:
    def __init__(self, versions=None):
        self.versions = versions or {}

    def send_packet(self, *args):
        raise NotImplementedError

    def get_app_version(self, ctx, port_id, channel_id):
        return self.versions.get((port_id, channel_id))


def bank_handler(ctx, req):
    return ResponseQuery(
        code=0,
        log="log text",
        info="info text",
        key=b"k",
        value=b"balances:" + req.data,
        height=ctx.block_height,
        codespace="bank",
    )


def make_keeper(router=None):
    if router is None:
        router = QueryRouter({BANK_PATH: bank_handler})
    return Keeper(
        FakeICS4Wrapper({(PORT_ID, "channel-0"): "icq-1"}),
        None,
        FakePortKeeper(),
        FakeScopedKeeper(),
        router,
        GOV_AUTHORITY,
    )


@pytest.fixture
def setup():
    keeper = make_keeper()
    ctx = Context(block_height=5)
    keeper.init_genesis(ctx, default_genesis())
    return keeper, ctx


def make_packet(data):
    return Packet(
        data=data,
        sequence=1,
        source_port=PORT_ID,
        source_channel="channel-0",
        destination_port=PORT_ID,
        destination_channel="channel-1",
        timeout_height=(1, 100),
    )


def packet_bytes(reqs):
    return InterchainQueryPacketData(data=serialize_cosmos_query(reqs)).get_bytes()


def allow_bank(keeper, ctx):
    keeper.set_params(ctx, Params(True, [BANK_PATH]))


def test_init_genesis():
    keeper = make_keeper()
    ctx = Context()
    state = GenesisState(
        host_port=TEST_PORT,
        params=Params(host_enabled=False, allow_queries=["path/to/query1", "path/to/query2"]),
    )
    keeper.init_genesis(ctx, state)
    assert keeper.get_port(ctx) == TEST_PORT
    assert keeper.get_params(ctx) == Params(False, ["path/to/query1", "path/to/query2"])
    assert keeper.is_bound(ctx, TEST_PORT)


def test_init_genesis_skips_binding_when_already_bound():
    keeper = make_keeper()
    ctx = Context()
    keeper.bind_port(ctx, TEST_PORT)
    keeper.init_genesis(ctx, GenesisState(host_port=TEST_PORT, params=default_params()))
    assert keeper.port_keeper.bound == {TEST_PORT}


def test_init_genesis_invalid_params_raises():
    keeper = make_keeper()
    ctx = Context()
    with pytest.raises(RuntimeError, match="could not set params"):
        keeper.init_genesis(ctx, GenesisState(host_port=TEST_PORT, params=Params(True, [" "])))


def test_export_genesis(setup):
    keeper, ctx = setup
    state = keeper.export_genesis(ctx)
    assert state.host_port == PORT_ID
    assert state.params == default_params()


def test_query_params(setup):
    keeper, ctx = setup
    assert keeper.query_params(ctx) == default_params()


def test_is_bound(setup):
    keeper, ctx = setup
    assert keeper.is_bound(ctx, PORT_ID)
    assert not keeper.is_bound(ctx, "other-port")


def test_params_roundtrip(setup):
    keeper, ctx = setup
    assert keeper.get_params(ctx) == default_params()
    expected = Params(False, ["/cosmos.staking.v1beta1.MsgDelegate"])
    keeper.set_params(ctx, expected)
    assert keeper.get_params(ctx) == expected
    assert keeper.is_host_enabled(ctx) is False
    assert keeper.get_allow_queries(ctx) == ["/cosmos.staking.v1beta1.MsgDelegate"]


def test_get_params_without_stored_value():
    keeper = make_keeper()
    assert keeper.get_params(Context()) == Params()


def test_set_invalid_params_keeps_store(setup):
    keeper, ctx = setup
    with pytest.raises(ValueError):
        keeper.set_params(ctx, Params(True, [""]))
    assert keeper.get_params(ctx) == default_params()


def test_capabilities(setup):
    keeper, ctx = setup
    cap = keeper.scoped_keeper.get_capability(ctx, port_path(PORT_ID))
    assert keeper.authenticate_capability(ctx, cap, port_path(PORT_ID))
    assert not keeper.authenticate_capability(ctx, Capability(999), port_path(PORT_ID))
    with pytest.raises(ValueError):
        keeper.claim_capability(ctx, cap, port_path(PORT_ID))


def test_get_app_version(setup):
    keeper, ctx = setup
    assert keeper.get_app_version(ctx, PORT_ID, "channel-0") == "icq-1"
    assert keeper.get_app_version(ctx, PORT_ID, "channel-9") is None


def test_logger_module(setup):
    keeper, ctx = setup
    assert keeper.logger(ctx).extra["module"] == "x/ibc-interchainquery"


def test_on_recv_packet_success(setup):
    keeper, ctx = setup
    allow_bank(keeper, ctx)
    packet = make_packet(packet_bytes([RequestQuery(data=b"addr", path=BANK_PATH)]))
    result = keeper.on_recv_packet(ctx, packet)
    ack = InterchainQueryPacketAck.from_json(result)
    responses = deserialize_cosmos_response(ack.data)
    assert len(responses) == 1
    assert responses[0].value == b"balances:addr"
    assert responses[0].key == b"k"
    assert responses[0].height == 5
    # non-deterministic fields are stripped
    assert responses[0].codespace == ""
    assert responses[0].log == ""
    assert responses[0].info == ""


def test_on_recv_packet_empty_data(setup):
    keeper, ctx = setup
    with pytest.raises(UnknownDataTypeError):
        keeper.on_recv_packet(ctx, make_packet(b""))


def test_on_recv_packet_invalid_query_data(setup):
    keeper, ctx = setup
    data = InterchainQueryPacketData(data=b"invalid packet data").get_bytes()
    with pytest.raises(ValueError):
        keeper.on_recv_packet(ctx, make_packet(data))


def test_on_recv_packet_path_not_allowed(setup):
    keeper, ctx = setup
    packet = make_packet(packet_bytes([RequestQuery(path=BANK_PATH)]))
    with pytest.raises(UnauthorizedError, match="query path not allowed"):
        keeper.on_recv_packet(ctx, packet)


def test_on_recv_packet_historical_query(setup):
    keeper, ctx = setup
    allow_bank(keeper, ctx)
    packet = make_packet(packet_bytes([RequestQuery(path=BANK_PATH, height=1)]))
    with pytest.raises(UnauthorizedError, match="query height not allowed: 1"):
        keeper.on_recv_packet(ctx, packet)


def test_on_recv_packet_current_height_allowed(setup):
    keeper, ctx = setup
    allow_bank(keeper, ctx)
    packet = make_packet(packet_bytes([RequestQuery(path=BANK_PATH, height=5)]))
    ack = InterchainQueryPacketAck.from_json(keeper.on_recv_packet(ctx, packet))
    assert deserialize_cosmos_response(ack.data)[0].value == b"balances:"


def test_on_recv_packet_proof_not_allowed(setup):
    keeper, ctx = setup
    allow_bank(keeper, ctx)
    packet = make_packet(packet_bytes([RequestQuery(path=BANK_PATH, prove=True)]))
    with pytest.raises(UnauthorizedError, match="query proof not allowed"):
        keeper.on_recv_packet(ctx, packet)


def test_on_recv_packet_no_route(setup):
    keeper, ctx = setup
    keeper.set_params(ctx, Params(True, ["/unknown"]))
    packet = make_packet(packet_bytes([RequestQuery(path="/unknown")]))
    with pytest.raises(UnauthorizedError, match="no route found for: /unknown"):
        keeper.on_recv_packet(ctx, packet)


def test_on_recv_packet_discards_state_on_error():
    def writing_handler(ctx, req):
        ctx.store.set(b"written", b"1")
        ctx.event_manager.emit_event(Event("wrote"))
        return ResponseQuery(value=b"ok")

    keeper = make_keeper(QueryRouter({"/write": writing_handler}))
    ctx = Context()
    keeper.init_genesis(ctx, default_genesis())
    keeper.set_params(ctx, Params(True, ["/write", "/missing"]))
    packet = make_packet(packet_bytes([RequestQuery(path="/write"), RequestQuery(path="/missing")]))
    with pytest.raises(UnauthorizedError):
        keeper.on_recv_packet(ctx, packet)
    assert ctx.store.get(b"written") is None
    assert ctx.event_manager.events() == []


def test_on_recv_packet_commits_state_and_events_on_success():
    def writing_handler(ctx, req):
        ctx.store.set(b"written", b"1")
        ctx.event_manager.emit_event(Event("wrote"))
        return ResponseQuery(value=b"ok")

    keeper = make_keeper(QueryRouter({"/write": writing_handler}))
    ctx = Context()
    keeper.init_genesis(ctx, default_genesis())
    keeper.set_params(ctx, Params(True, ["/write"]))
    keeper.on_recv_packet(ctx, make_packet(packet_bytes([RequestQuery(path="/write")])))
    assert ctx.store.get(b"written") == b"1"
    assert Event("wrote") in ctx.event_manager.events()


def test_out_of_gas_on_slow_queries():
    denoms = {"stake": 10}

    def gas_handler(ctx, req):
        for name in denoms:
            ctx.gas_meter.consume_gas(100, "read balance " + name)
        return ResponseQuery(value=str(len(denoms)).encode())

    keeper = make_keeper(QueryRouter({BANK_PATH: gas_handler}))
    ctx = Context()
    keeper.init_genesis(ctx, default_genesis())
    allow_bank(keeper, ctx)
    packet = make_packet(packet_bytes([RequestQuery(path=BANK_PATH)]))

    ctx.gas_meter = GasMeter(limit=2000)
    ack = InterchainQueryPacketAck.from_json(keeper.on_recv_packet(ctx, packet))
    assert deserialize_cosmos_response(ack.data)[0].value == b"1"

    denoms.update({f"denom{i}": 10 for i in range(10_000)})
    ctx.gas_meter = GasMeter(limit=2000)
    with pytest.raises(OutOfGasError):
        keeper.on_recv_packet(ctx, packet)


def test_emit_write_error_acknowledgement_event():
    ctx = Context()
    packet = make_packet(b"{}")
    emit_write_error_acknowledgement_event(ctx, packet, ValueError("boom"))
    assert ctx.event_manager.events() == [
        Event(
            "icq_packet_error",
            (("module", "interchainquery"), ("error", "boom"), ("host_channel_id", "channel-1")),
        )
    ]


def test_query_router():
    router = QueryRouter()
    router.register("/a", bank_handler)
    assert router.route("/a") is bank_handler
    assert router.route("/b") is None
    with pytest.raises(ValueError):
        router.register("/a", bank_handler)


def test_update_params_wrong_authority(setup):
    keeper, ctx = setup
    server = MsgServer(keeper)
    msg = MsgUpdateParams(authority="cosmos1other", params=Params(False, []))
    with pytest.raises(InvalidSignerError, match="invalid authority"):
        server.update_params(ctx, msg)
    assert keeper.get_params(ctx) == default_params()


def test_update_params_success(setup):
    keeper, ctx = setup
    server = MsgServer(keeper)
    new = Params(False, [BANK_PATH])
    server.update_params(ctx, MsgUpdateParams(authority=GOV_AUTHORITY, params=new))
    assert keeper.get_params(ctx) == new


def test_update_params_invalid(setup):
    keeper, ctx = setup
    server = MsgServer(keeper)
    with pytest.raises(ValueError):
        server.update_params(ctx, MsgUpdateParams(authority=GOV_AUTHORITY, params=Params(True, [" "])))
    assert ctx.store.get(PARAMS_KEY) is not None
    assert keeper.get_params(ctx) == default_params()