"""
Exceptions for the asset directory client.

Hierarchy:
    AssetDirectoryError
    ├── TransferError            transport or protocol failure
    │   └── ItemNotFoundError    404 from the server
    ├── InvalidResponseError     response of an unexpected shape
    └── ContractViolationError   caller misuse (also a ValueError)
        ├── UploadSizeExceededError
        ├── IncompleteUploadError
        └── ChannelClosedError

Cancellation is not part of this hierarchy: ``asyncio.CancelledError``
propagates unchanged.
"""

from __future__ import annotations


class AssetDirectoryError(Exception):
    """Base exception for all asset directory errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause

    @property
    def cause(self) -> BaseException | None:
        """Underlying exception, if any."""
        return self._original_cause


# =============================================================================
# Transfer Errors
# =============================================================================


class TransferError(AssetDirectoryError):
    """
    A request to the asset directory failed.

    ``status_code`` is None when no response was obtained at all
    (connection refused, DNS failure, timeout).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code

    @property
    def is_transport_error(self) -> bool:
        """True when the failure happened before any response was received."""
        return self.status_code is None


class ItemNotFoundError(TransferError):
    """The requested asset does not exist."""

    def __init__(self, message: str = "Item not found.", cause: BaseException | None = None) -> None:
        super().__init__(message, status_code=404, cause=cause)


class InvalidResponseError(AssetDirectoryError):
    """Server returned a response that could not be interpreted."""


# =============================================================================
# Contract Violations
# =============================================================================


class ContractViolationError(AssetDirectoryError, ValueError):
    """The caller used a channel in a way its contract does not allow."""


class UploadSizeExceededError(ContractViolationError):
    """More bytes were written than the declared total size."""

    def __init__(self, attempted: int, remaining: int) -> None:
        self.attempted = attempted
        self.remaining = remaining
        super().__init__(
            f"Cannot write {attempted} bytes: only {remaining} bytes remain "
            "of the declared total size."
        )


class IncompleteUploadError(ContractViolationError):
    """Channel was closed before the declared total size was written."""

    def __init__(self, bytes_written: int, total_size: int) -> None:
        self.bytes_written = bytes_written
        self.total_size = total_size
        super().__init__(
            f"Upload closed after {bytes_written} of {total_size} declared bytes."
        )


class ChannelClosedError(ContractViolationError):
    """Operation attempted on a closed or failed channel."""

    def __init__(self, message: str = "Channel is closed.") -> None:
        super().__init__(message)


__all__ = [
    "AssetDirectoryError",
    "TransferError",
    "ItemNotFoundError",
    "InvalidResponseError",
    "ContractViolationError",
    "UploadSizeExceededError",
    "IncompleteUploadError",
    "ChannelClosedError",
]
