"""Host side of asynchronous interchain queries: handshake, allow-listing, execution and acks."""

__version__ = "0.1.0"