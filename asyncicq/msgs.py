"""Governance message that updates the host parameters."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from .types import Params

ACCOUNT_PREFIX = "cosmos"

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)


def _polymod(values) -> int:
    chk = 1
    for v in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ v
        for i, gen in enumerate(_GENERATORS):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _convert_bits(data, from_bits: int, to_bits: int) -> bytes:
    acc = bits = 0
    out = bytearray()
    maxv = (1 << to_bits) - 1
    for value in data:
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & maxv)
    if bits >= from_bits or (acc << (to_bits - bits)) & maxv:
        raise ValueError("invalid padding in bech32 data")
    return bytes(out)


def bech32_decode(address) -> tuple[str, bytes]:
    """Decode a bech32 string into its human-readable part and data bytes."""
    if not address or not address.strip():
        raise ValueError("empty address string is not allowed")
    if address.lower() != address and address.upper() != address:
        raise ValueError("mixed case in bech32 string")
    address = address.lower()
    sep = address.rfind("1")
    if sep < 1 or sep + 7 > len(address) or len(address) > 90:
        raise ValueError(f"invalid bech32 string: {address}")
    hrp, rest = address[:sep], address[sep + 1:]
    try:
        values = [_CHARSET.index(c) for c in rest]
    except ValueError as exc:
        raise ValueError(f"invalid character in bech32 string: {address}") from exc
    if _polymod(_hrp_expand(hrp) + values) != 1:
        raise ValueError(f"invalid checksum in bech32 string: {address}")
    return hrp, _convert_bits(values[:-6], 5, 8)


def _account_address(address: str) -> bytes:
    hrp, data = bech32_decode(address)
    if hrp != ACCOUNT_PREFIX:
        raise ValueError(f"invalid Bech32 prefix; expected {ACCOUNT_PREFIX}, got {hrp}")
    return data


@dataclass
class MsgUpdateParams:
    authority: str = ""
    params: Params = field(default_factory=Params)

    def get_sign_bytes(self) -> bytes:
        body = {"authority": self.authority, "params": self.params.to_dict()}
        return json.dumps(body, sort_keys=True, separators=(",", ":")).encode()

    def get_signers(self) -> list[bytes]:
        try:
            return [_account_address(self.authority)]
        except ValueError:
            return [b""]

    def validate_basic(self) -> None:
        try:
            _account_address(self.authority)
        except ValueError as exc:
            raise ValueError(f"invalid authority address: {exc}") from exc
        self.params.validate()