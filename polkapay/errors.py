"""Error taxonomy for polkapay.

Every error carries a machine-readable ``kind`` alongside its message so
callers can branch on the category without parsing text:

- ValidationError:       malformed input (address, amount). No network call.
- ConfigurationError:    missing credential or unknown network. Not retryable.
- TransportError:        HTTP/network failure talking to an indexer or node.
                         Retryable by the caller.
- IndexerError:          the indexer answered, but with an error envelope
                         (hash not found, bad request). Generally not retryable.
- SemanticMismatchError: the extrinsic exists but does not prove the payment.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error categories."""

    validation = "validation"
    configuration = "configuration"
    transport = "transport"
    indexer = "indexer"
    semantic_mismatch = "semantic_mismatch"
    unexpected = "unexpected"


class PolkapayError(Exception):
    """Base for all polkapay errors."""

    kind: ErrorKind = ErrorKind.unexpected


class ValidationError(PolkapayError):
    """Raised when input is malformed."""

    kind = ErrorKind.validation


class AmountError(ValidationError, ValueError):
    """Raised when an amount cannot be converted exactly."""


class StatusTransitionError(ValidationError):
    """Raised when a payment record is moved to a status it cannot reach."""


class ConfigurationError(PolkapayError):
    """Raised when required configuration is missing or unknown."""

    kind = ErrorKind.configuration


class TransportError(PolkapayError):
    """Raised when a remote service cannot be reached or misbehaves."""

    kind = ErrorKind.transport


class IndexerHTTPError(TransportError):
    """Raised when the indexer answers with a non-2xx HTTP status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class IndexerError(PolkapayError):
    """Raised when the indexer envelope reports an error or carries no data."""

    kind = ErrorKind.indexer

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class SemanticMismatchError(PolkapayError):
    """Raised when an extrinsic exists but is not the expected transfer."""

    kind = ErrorKind.semantic_mismatch
