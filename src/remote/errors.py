# src/remote/errors.py

"""Failure taxonomy for the remote catalog store."""


class RemoteStoreError(Exception):
    """Base class; non-retryable unless a subclass says otherwise."""


class TransientStoreError(RemoteStoreError):
    """Network, timeout or 5xx failure. Safe to retry."""


class StoreNotFoundError(RemoteStoreError):
    """The seller record does not exist. Terminal."""

    def __init__(self, seller_id: str) -> None:
        super().__init__(f"Store not found: {seller_id}")
        self.seller_id = seller_id


class StreamClosedError(RemoteStoreError):
    """The server cancelled the live stream (rules change, auth revoked)."""
