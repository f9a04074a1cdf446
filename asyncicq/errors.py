"""Error types raised by the interchain query host."""

from __future__ import annotations

MODULE_CODESPACE = "interchainquery"
SDK_CODESPACE = "sdk"
IBC_CHANNEL_CODESPACE = "channel"
GOV_CODESPACE = "gov"


class ICQError(Exception):
    """Base error carrying a codespace, an ABCI code and a description."""

    codespace: str = MODULE_CODESPACE
    code: int = 1
    description: str = "internal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = f"{detail}: {self.description}" if detail else self.description
        super().__init__(message)


class UnknownDataTypeError(ICQError):
    code = 1
    description = "unknown data type"


class InvalidChannelFlowError(ICQError):
    code = 2
    description = "invalid message sent to channel end"


class InvalidHostPortError(ICQError):
    code = 3
    description = "invalid host port"


class HostDisabledError(ICQError):
    code = 4
    description = "host is disabled"


class InvalidVersionError(ICQError):
    code = 5
    description = "invalid version"


class InvalidChannelOrderingError(ICQError):
    codespace = IBC_CHANNEL_CODESPACE
    code = 4
    description = "invalid channel ordering"


class InvalidRequestError(ICQError):
    codespace = SDK_CODESPACE
    code = 18
    description = "invalid request"


class UnauthorizedError(ICQError):
    codespace = SDK_CODESPACE
    code = 4
    description = "unauthorized"


class InvalidSignerError(ICQError):
    codespace = GOV_CODESPACE
    code = 8
    description = "expected gov account as only signer for proposal message"