import json

from asyncicq.channel import (
    Acknowledgement,
    channel_capability_path,
    port_path,
)
from asyncicq.errors import HostDisabledError


def test_paths():
    assert port_path("icqhost") == "ports/icqhost"
    assert channel_capability_path("icqhost", "channel-0") == "capabilities/ports/icqhost/channels/channel-0"


def test_capability_path_extends_port_path():
    path = channel_capability_path("mock", "channel-7")
    assert path == "capabilities/" + port_path("mock") + "/channels/channel-7"


def test_result_ack():
    ack = Acknowledgement.result(b"data")
    assert ack.success()
    decoded = json.loads(ack.acknowledgement())
    assert list(decoded) == ["result"]


def test_error_ack():
    ack = Acknowledgement.error(HostDisabledError())
    assert not ack.success()
    decoded = json.loads(ack.acknowledgement())
    assert decoded["error"] == "ABCI code: 4: error handling packet: see events for details"


def test_error_ack_hides_detail():
    ack = Acknowledgement.error(HostDisabledError("secret detail"))
    assert b"secret detail" not in ack.acknowledgement()