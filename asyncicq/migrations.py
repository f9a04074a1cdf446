"""Moves host parameters out of the legacy parameter subspace into module state."""

from __future__ import annotations

from typing import Any, Mapping

from .codec import decode_params, encode_params
from .types import KEY_ALLOW_QUERIES, KEY_HOST_ENABLED, PARAMS_KEY, Params

_PARAM_FIELDS = {
    KEY_HOST_ENABLED: "host_enabled",
    KEY_ALLOW_QUERIES: "allow_queries",
}


class Subspace:
    """Legacy parameter subspace holding raw values under their parameter keys."""

    def __init__(self, values: Mapping[bytes, Any] | None = None) -> None:
        self._values: dict[bytes, Any] = {bytes(k): v for k, v in (values or {}).items()}

    def get_param_set(self, ctx) -> Params:
        """Read every parameter of the set, validating each value."""
        params = Params()
        for key, _, validator in params.param_set_pairs():
            if key not in self._values:
                raise KeyError(f"parameter {key.decode()} not found in subspace")
            value = self._values[key]
            validator(value)
            if isinstance(value, (list, tuple)):
                value = list(value)
            setattr(params, _PARAM_FIELDS[key], value)
        return params


def migrate(ctx, store, legacy_subspace) -> None:
    """Copy the parameters from the legacy subspace into the module store."""
    current = legacy_subspace.get_param_set(ctx)
    current.validate()
    store.set(PARAMS_KEY, encode_params(current))
    _check_stored(store, current)


def _check_stored(store, current: Params) -> None:
    raw = store.get(PARAMS_KEY)
    if raw is None:
        raise ValueError(f"expected params at key {PARAMS_KEY!r} but not found")
    stored = decode_params(raw)
    if current.host_enabled != stored.host_enabled:
        raise ValueError(f"expected {current} but got {stored}")
    if len(current.allow_queries) != len(stored.allow_queries):
        raise ValueError(f"expected {current} but got {stored}")


class Migrator:
    """Runs in-place state migrations of the host module."""

    def __init__(self, keeper, legacy_subspace) -> None:
        self.keeper = keeper
        self.legacy_subspace = legacy_subspace

    def migrate_1_to_2(self, ctx) -> None:
        """Migrate from consensus version 1 to version 2."""
        migrate(ctx, ctx.store, self.legacy_subspace)