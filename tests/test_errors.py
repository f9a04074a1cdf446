import pytest

from asyncicq.errors import (
    HostDisabledError,
    ICQError,
    InvalidChannelFlowError,
    InvalidHostPortError,
    InvalidRequestError,
    InvalidVersionError,
    UnauthorizedError,
    UnknownDataTypeError,
)


@pytest.mark.parametrize(
    "cls,code,description",
    [
        (UnknownDataTypeError, 1, "unknown data type"),
        (InvalidChannelFlowError, 2, "invalid message sent to channel end"),
        (InvalidHostPortError, 3, "invalid host port"),
        (HostDisabledError, 4, "host is disabled"),
        (InvalidVersionError, 5, "invalid version"),
    ],
)
def test_module_errors(cls, code, description):
    err = cls()
    assert err.code == code
    assert err.codespace == "interchainquery"
    assert str(err) == description


def test_wrapped_message():
    err = InvalidVersionError("got version, expected icq-1")
    assert str(err) == "got version, expected icq-1: invalid version"
    assert err.detail == "got version, expected icq-1"


def test_hierarchy_catchable():
    err = UnauthorizedError("query proof not allowed")
    assert isinstance(err, ICQError)
    assert err.detail == "query proof not allowed"
    assert str(err).startswith("query proof not allowed: ")
    assert issubclass(InvalidRequestError, ICQError)