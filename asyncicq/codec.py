"""Binary and JSON encodings of queries, responses, packets and parameters."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Iterator

from .types import Params

_U64 = (1 << 64) - 1


def _encode_varint(value: int) -> bytes:
    value &= _U64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(buf: bytes, pos: int) -> tuple[int, int]:
    result = 0
    for shift in range(0, 70, 7):
        if pos >= len(buf):
            raise ValueError("unexpected end of data")
        byte = buf[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _U64, pos
    raise ValueError("varint overflow")


def _to_int64(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


def _fields(buf: bytes) -> Iterator[tuple[int, int, object]]:
    pos = 0
    while pos < len(buf):
        tag, pos = _read_varint(buf, pos)
        number, wire = tag >> 3, tag & 7
        if number == 0:
            raise ValueError("illegal field number 0")
        if wire == 0:
            value, pos = _read_varint(buf, pos)
        elif wire in (1, 5):
            size = 8 if wire == 1 else 4
            if pos + size > len(buf):
                raise ValueError("unexpected end of data")
            value, pos = buf[pos:pos + size], pos + size
        elif wire == 2:
            size, pos = _read_varint(buf, pos)
            if pos + size > len(buf):
                raise ValueError("unexpected end of data")
            value, pos = buf[pos:pos + size], pos + size
        else:
            raise ValueError(f"illegal wire type {wire}")
        yield number, wire, value


def _key(number: int, wire: int) -> bytes:
    return _encode_varint(number << 3 | wire)


def _bytes_field(number: int, value: bytes) -> bytes:
    if not value:
        return b""
    return _key(number, 2) + _encode_varint(len(value)) + value


def _int_field(number: int, value: int) -> bytes:
    if not value:
        return b""
    return _key(number, 0) + _encode_varint(value)


def _expect(wire: int, expected: int, number: int) -> None:
    if wire != expected:
        raise ValueError(f"wrong wire type {wire} for field {number}")


@dataclass
class RequestQuery:
    data: bytes = b""
    path: str = ""
    height: int = 0
    prove: bool = False

    def _encode(self) -> bytes:
        return (
            _bytes_field(1, self.data)
            + _bytes_field(2, self.path.encode())
            + _int_field(3, self.height)
            + _int_field(4, int(self.prove))
        )

    @classmethod
    def _decode(cls, buf: bytes) -> "RequestQuery":
        req = cls()
        for number, wire, value in _fields(buf):
            if number in (1, 2):
                _expect(wire, 2, number)
                if number == 1:
                    req.data = bytes(value)
                else:
                    req.path = bytes(value).decode()
            elif number in (3, 4):
                _expect(wire, 0, number)
                if number == 3:
                    req.height = _to_int64(value)
                else:
                    req.prove = bool(value)
        return req


@dataclass
class ResponseQuery:
    code: int = 0
    log: str = ""
    info: str = ""
    index: int = 0
    key: bytes = b""
    value: bytes = b""
    height: int = 0
    codespace: str = ""

    def _encode(self) -> bytes:
        return (
            _int_field(1, self.code)
            + _bytes_field(3, self.log.encode())
            + _bytes_field(4, self.info.encode())
            + _int_field(5, self.index)
            + _bytes_field(6, self.key)
            + _bytes_field(7, self.value)
            + _int_field(9, self.height)
            + _bytes_field(10, self.codespace.encode())
        )

    @classmethod
    def _decode(cls, buf: bytes) -> "ResponseQuery":
        resp = cls()
        ints = {1: "code", 5: "index", 9: "height"}
        strs = {3: "log", 4: "info", 10: "codespace"}
        raw = {6: "key", 7: "value"}
        for number, wire, value in _fields(buf):
            if number in ints:
                _expect(wire, 0, number)
                v = value & 0xFFFFFFFF if number == 1 else _to_int64(value)
                setattr(resp, ints[number], v)
            elif number in strs:
                _expect(wire, 2, number)
                setattr(resp, strs[number], bytes(value).decode())
            elif number in raw:
                _expect(wire, 2, number)
                setattr(resp, raw[number], bytes(value))
        return resp


def _decode_repeated(data: bytes, item_cls) -> list:
    items = []
    for number, wire, value in _fields(data):
        if number == 1:
            _expect(wire, 2, number)
            items.append(item_cls._decode(bytes(value)))
    return items


def serialize_cosmos_query(reqs) -> bytes:
    return b"".join(_key(1, 2) + _encode_varint(len(e)) + e for e in (r._encode() for r in reqs))


def deserialize_cosmos_query(data) -> list[RequestQuery]:
    return _decode_repeated(bytes(data), RequestQuery)


def serialize_cosmos_response(resps) -> bytes:
    return b"".join(_key(1, 2) + _encode_varint(len(e)) + e for e in (r._encode() for r in resps))


def deserialize_cosmos_response(data) -> list[ResponseQuery]:
    return _decode_repeated(bytes(data), ResponseQuery)


def encode_params(params: Params) -> bytes:
    out = _int_field(2, int(params.host_enabled))
    for path in params.allow_queries:
        encoded = path.encode()
        out += _key(3, 2) + _encode_varint(len(encoded)) + encoded
    return out


def decode_params(data) -> Params:
    params = Params()
    for number, wire, value in _fields(bytes(data)):
        if number == 2:
            _expect(wire, 0, number)
            params.host_enabled = bool(value)
        elif number == 3:
            _expect(wire, 2, number)
            params.allow_queries.append(bytes(value).decode())
    return params


def _sorted_json(obj) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()


def _load_object(raw) -> dict:
    try:
        obj = json.loads(raw)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ValueError("expected a JSON object")
    return obj


def _b64(value) -> bytes:
    if not value:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, TypeError) as exc:
        raise ValueError(f"invalid base64 data: {exc}") from exc


@dataclass
class InterchainQueryPacketData:
    data: bytes = b""
    memo: str = ""

    def validate_basic(self) -> None:
        """Check that the fields hold values the packet encoding can carry."""
        if not isinstance(self.data, (bytes, bytearray)):
            raise ValueError(f"packet data must be bytes, got {type(self.data).__name__}")
        if not isinstance(self.memo, str):
            raise ValueError(f"packet memo must be a string, got {type(self.memo).__name__}")

    def get_bytes(self) -> bytes:
        return _sorted_json({"data": base64.b64encode(self.data).decode(), "memo": self.memo})

    @classmethod
    def from_json(cls, raw) -> "InterchainQueryPacketData":
        obj = _load_object(raw)
        return cls(data=_b64(obj.get("data")), memo=obj.get("memo") or "")


@dataclass
class InterchainQueryPacketAck:
    data: bytes = b""

    def to_json(self) -> bytes:
        return _sorted_json({"data": base64.b64encode(self.data).decode()})

    @classmethod
    def from_json(cls, raw) -> "InterchainQueryPacketAck":
        return cls(data=_b64(_load_object(raw).get("data")))