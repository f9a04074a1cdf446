import pytest

from asyncicq.codec import decode_params
from asyncicq.context import Context, KVStore
from asyncicq.keeper import Keeper, QueryRouter
from asyncicq.migrations import Migrator, Subspace, migrate
from asyncicq.types import KEY_ALLOW_QUERIES, KEY_HOST_ENABLED, PARAMS_KEY, Params

ALLOWED = ["/cosmos.bank.v1beta1.Query/AllBalances"]


def _subspace(host_enabled=False, allow=None):
    return Subspace({KEY_HOST_ENABLED: host_enabled, KEY_ALLOW_QUERIES: list(ALLOWED if allow is None else allow)})


def test_migrate_moves_params_to_store():
    ctx = Context()
    store = ctx.store
    migrate(ctx, store, _subspace())
    result = decode_params(store.get(PARAMS_KEY))
    assert result == Params(host_enabled=False, allow_queries=ALLOWED)


def test_migrate_enabled_host():
    ctx = Context()
    migrate(ctx, ctx.store, _subspace(host_enabled=True, allow=["/a", "/b"]))
    assert decode_params(ctx.store.get(PARAMS_KEY)) == Params(True, ["/a", "/b"])


def test_migrate_rejects_invalid_params():
    ctx = Context()
    with pytest.raises(ValueError):
        migrate(ctx, ctx.store, _subspace(allow=[" "]))
    assert ctx.store.get(PARAMS_KEY) is None


def test_subspace_get_param_set():
    params = _subspace(host_enabled=True).get_param_set(Context())
    assert params == Params(True, ALLOWED)


def test_subspace_missing_key():
    with pytest.raises(KeyError):
        Subspace({KEY_HOST_ENABLED: True}).get_param_set(Context())


def test_subspace_wrong_type():
    with pytest.raises(TypeError):
        Subspace({KEY_HOST_ENABLED: "yes", KEY_ALLOW_QUERIES: []}).get_param_set(Context())


def test_migrator_migrate_1_to_2():
    ctx = Context(store=KVStore())
    keeper = Keeper(None, None, None, None, QueryRouter(), "authority")
    Migrator(keeper, _subspace()).migrate_1_to_2(ctx)
    assert keeper.get_params(ctx) == Params(False, ALLOWED)