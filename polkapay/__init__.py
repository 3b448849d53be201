"""Polkadot-ecosystem payment verification and address/amount library.

Modules:
- networks: static per-network configuration (Network, NETWORKS)
- address:  SS58 validation, re-encoding and comparison
- amounts:  exact chain-unit <-> display-amount conversion
- indexer:  Subscan client and lookup protocols
- verifier: PaymentVerifier, VerificationResult
- records:  PaymentRecord factory and status lifecycle
"""

from polkapay.address import (
    decode_address,
    encode_address,
    format_address,
    is_same_address,
    is_valid_address,
    shorten_address,
)
from polkapay.amounts import to_chain, to_display
from polkapay.errors import (
    AmountError,
    ConfigurationError,
    ErrorKind,
    IndexerError,
    IndexerHTTPError,
    PolkapayError,
    SemanticMismatchError,
    StatusTransitionError,
    TransportError,
    ValidationError,
)
from polkapay.indexer import (
    BlockDetail,
    BlockLookup,
    ExtrinsicLookup,
    ExtrinsicRecord,
    SubscanClient,
)
from polkapay.networks import NETWORKS, Network, get_network
from polkapay.records import (
    PaymentRecord,
    PaymentStatus,
    apply_verification,
    create_payment_record,
    mark_processing,
    transition,
)
from polkapay.verifier import (
    PaymentVerifier,
    VerificationDetails,
    VerificationResult,
    VerificationState,
)

__version__ = "0.1.0"

__all__ = [
    # Networks
    "Network",
    "NETWORKS",
    "get_network",
    # Addresses
    "decode_address",
    "encode_address",
    "is_valid_address",
    "format_address",
    "shorten_address",
    "is_same_address",
    # Amounts
    "to_display",
    "to_chain",
    # Indexer
    "SubscanClient",
    "ExtrinsicLookup",
    "BlockLookup",
    "ExtrinsicRecord",
    "BlockDetail",
    # Verification
    "PaymentVerifier",
    "VerificationResult",
    "VerificationDetails",
    "VerificationState",
    # Records
    "PaymentRecord",
    "PaymentStatus",
    "create_payment_record",
    "mark_processing",
    "apply_verification",
    "transition",
    # Errors
    "ErrorKind",
    "PolkapayError",
    "ValidationError",
    "AmountError",
    "StatusTransitionError",
    "ConfigurationError",
    "TransportError",
    "IndexerHTTPError",
    "IndexerError",
    "SemanticMismatchError",
]
