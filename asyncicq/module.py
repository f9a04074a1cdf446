"""Application module wiring for the interchain query host."""

from __future__ import annotations

import json
from typing import Callable

from .context import Context
from .migrations import Migrator
from .types import MODULE_NAME, PORT_ID, QUERIER_ROUTE, GenesisState, default_genesis

CONSENSUS_VERSION = 2


def _encode_genesis(state: GenesisState) -> bytes:
    return json.dumps(state.to_dict(), separators=(",", ":")).encode()


def _decode_genesis(data) -> GenesisState:
    try:
        obj = json.loads(data)
        if not isinstance(obj, dict):
            raise ValueError("expected a JSON object")
        return GenesisState.from_dict(obj)
    except (ValueError, TypeError, AttributeError) as exc:
        raise ValueError(f"failed to unmarshal {MODULE_NAME} genesis state: {exc}") from exc


class AppModuleBasic:
    """Stateless parts of the module: its name and genesis handling."""

    def name(self) -> str:
        return MODULE_NAME

    def default_genesis(self) -> bytes:
        """Return the default genesis state as JSON bytes."""
        return _encode_genesis(default_genesis())

    def validate_genesis(self, data) -> None:
        """Decode genesis JSON and validate it; raise ValueError when invalid."""
        _decode_genesis(data).validate()


class AppModule(AppModuleBasic):
    """The interchain query host module bound to a keeper."""

    def __init__(self, keeper, legacy_subspace=None) -> None:
        self.keeper = keeper
        # Used only to migrate parameters out of the legacy subspace.
        self.legacy_subspace = legacy_subspace

    def init_module(self, ctx: Context, params) -> None:
        """Initialize the module once, as an alternative to genesis."""
        try:
            self.keeper.set_params(ctx, params)
        except Exception as exc:
            raise RuntimeError(f"could not set params: {exc}") from exc
        if self.keeper.is_host_enabled(ctx):
            try:
                self.keeper.bind_port(ctx, PORT_ID)
            except Exception as exc:
                raise RuntimeError(f"could not claim port capability: {exc}") from exc

    def querier_route(self) -> str:
        return QUERIER_ROUTE

    def migrations(self) -> dict[int, Callable[[Context], None]]:
        """Return the state migrations keyed by the version they migrate from."""
        migrator = Migrator(self.keeper, self.legacy_subspace)
        return {1: migrator.migrate_1_to_2}

    def init_genesis(self, ctx: Context, data) -> list:
        """Initialize state from genesis JSON; no validator updates are returned."""
        self.keeper.init_genesis(ctx, _decode_genesis(data))
        return []

    def export_genesis(self, ctx: Context) -> bytes:
        return _encode_genesis(self.keeper.export_genesis(ctx))

    def consensus_version(self) -> int:
        return CONSENSUS_VERSION