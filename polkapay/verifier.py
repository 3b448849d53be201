"""On-chain payment verification for Polkadot-ecosystem transfers.

Verifies that a claimed extrinsic hash is a successful balance transfer by:
1. Validating and normalising the sender and recipient addresses
2. Looking the extrinsic up on the indexer (one request)
3. Checking it is a ``balances.transfer*`` call that succeeded on-chain
4. Optionally matching the block's ``balances.Transfer`` event against the
   expected ``(from, to, amount)`` (a second request)

Outcomes are returned, never raised: every failure becomes a
``VerificationResult`` with ``verified=False``, a terminal state and a
machine-readable ``error_kind``.

Without the event match, the transferred amount is NOT independently proven.
The result then carries ``expected_amount`` only, with ``observed_amount``
unset and ``amount_verified=False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Optional

import httpx

from .address import format_address, is_same_address, is_valid_address
from .config import Settings, get_settings
from .errors import (
    ConfigurationError,
    ErrorKind,
    IndexerError,
    PolkapayError,
    SemanticMismatchError,
    TransportError,
    ValidationError,
)
from .indexer import (
    BlockEvent,
    BlockLookup,
    ExtrinsicLookup,
    ExtrinsicRecord,
    SubscanClient,
)
from .networks import NETWORKS, Network, get_network, known_ss58_formats
from .records import PaymentStatus

logger = logging.getLogger(__name__)

TRANSFER_MODULE = "balances"
TRANSFER_FUNCTIONS = frozenset({
    "transfer",
    "transfer_keep_alive",
    "transfer_allow_death",
    "transfer_all",
})
TRANSFER_EVENT = "transfer"


class VerificationState(str, Enum):
    """Where a verification attempt ended up."""

    unverified = "unverified"
    address_invalid = "address_invalid"
    verifying = "verifying"
    lookup_failed = "lookup_failed"
    extrinsic_found = "extrinsic_found"
    matched = "matched"
    mismatched = "mismatched"


@dataclass(frozen=True)
class VerificationDetails:
    """On-chain facts about a verified (or partly verified) extrinsic."""

    block_number: int
    timestamp: int
    fee: str
    expected_amount: str
    observed_amount: Optional[str] = None  # Only set when parsed from events
    amount_verified: bool = False

    def to_dict(self) -> dict:
        return {
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "fee": self.fee,
            "expected_amount": self.expected_amount,
            "observed_amount": self.observed_amount,
            "actual_amount": self.observed_amount,
            "amount_verified": self.amount_verified,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying a payment extrinsic."""

    verified: bool
    status: PaymentStatus
    state: VerificationState
    extrinsic_hash: str
    details: Optional[VerificationDetails] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def failure(
        cls,
        extrinsic_hash: str,
        state: VerificationState,
        error: str,
        error_kind: ErrorKind,
        details: Optional[VerificationDetails] = None,
    ) -> "VerificationResult":
        return cls(
            verified=False,
            status=PaymentStatus.FAILED,
            state=state,
            extrinsic_hash=extrinsic_hash,
            details=details,
            error=error,
            error_kind=error_kind,
        )

    @classmethod
    def from_error(
        cls,
        extrinsic_hash: str,
        state: VerificationState,
        exc: PolkapayError,
        details: Optional[VerificationDetails] = None,
    ) -> "VerificationResult":
        return cls.failure(extrinsic_hash, state, str(exc), exc.kind, details)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "verified": self.verified,
            "status": self.status.value,
            "state": self.state.value,
            "extrinsic_hash": self.extrinsic_hash,
            "details": self.details.to_dict() if self.details else None,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


def is_transfer_call(record: ExtrinsicRecord) -> bool:
    """Return True if the extrinsic is a balances-pallet transfer."""
    return (
        record.call_module.lower() == TRANSFER_MODULE
        and record.call_function.lower() in TRANSFER_FUNCTIONS
    )


def _param(params: list[dict[str, Any]], name: str, position: int) -> Any:
    for param in params:
        if str(param.get("name", "")).lower() == name:
            return param.get("value")
    if position < len(params):
        return params[position].get("value")
    return None


def _same_amount(observed: str, expected: str) -> bool:
    try:
        return int(observed) == int(expected)
    except (TypeError, ValueError):
        return False


def parse_transfer_event(event: BlockEvent) -> Optional[dict[str, str]]:
    """Extract ``{from, to, amount}`` from a ``balances.Transfer`` event."""
    if (
        event.module_id.lower() != TRANSFER_MODULE
        or event.event_id.lower() != TRANSFER_EVENT
    ):
        return None

    params = event.decoded_params()
    sender = _param(params, "from", 0)
    recipient = _param(params, "to", 1)
    amount = _param(params, "amount", 2)
    if sender is None or recipient is None or amount is None:
        return None
    return {"from": str(sender), "to": str(recipient), "amount": str(amount)}


class PaymentVerifier:
    """Verifies balance-transfer payments against an indexer.

    Stateless between calls: one instance can serve concurrent verifications.

    Usage::

        verifier = PaymentVerifier("polkadot", api_key=settings.subscan_api_key)
        result = await verifier.verify_payment(tx_hash, sender, recipient, "10000000000")
    """

    def __init__(
        self,
        network: str | Network = "polkadot",
        *,
        api_key: Optional[str] = None,
        indexer: Optional[ExtrinsicLookup] = None,
        registry: Mapping[str, Network] = NETWORKS,
        verify_amount: bool = False,
        timeout: Optional[float] = None,
    ) -> None:
        self.network = get_network(network, registry)
        self.registry = registry
        self.verify_amount = verify_amount
        self._api_key = api_key
        self._indexer = indexer
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PaymentVerifier":
        """Build a verifier from environment settings."""
        settings = settings or get_settings()
        return cls(
            settings.polkadot_network,
            api_key=settings.subscan_api_key,
            verify_amount=settings.verify_transfer_amount,
            timeout=settings.indexer_timeout,
        )

    def explorer_url(self, extrinsic_hash: str) -> str:
        return self.network.extrinsic_url(extrinsic_hash)

    def _accepts(self, address: str) -> bool:
        return any(
            is_valid_address(address, ss58_format)
            for ss58_format in known_ss58_formats(self.registry)
        )

    def _get_indexer(self) -> ExtrinsicLookup:
        if self._indexer is None:
            # Credential was checked by the caller
            self._indexer = SubscanClient(
                self.network,
                self._api_key,
                timeout=self._timeout,
                registry=self.registry,
            )
        return self._indexer

    async def verify_payment(
        self,
        extrinsic_hash: str,
        from_address: str,
        to_address: str,
        expected_amount: str,
    ) -> VerificationResult:
        """Verify that *extrinsic_hash* is a successful transfer.

        Args:
            extrinsic_hash: Hash of the extrinsic claimed to pay
            from_address: Expected sender, SS58 in any registered format
            to_address: Expected recipient, SS58 in any registered format
            expected_amount: Expected amount in chain units

        Returns:
            VerificationResult; ``verified`` is True only in state ``matched``.
        """
        if not self._accepts(from_address):
            return VerificationResult.from_error(
                extrinsic_hash,
                VerificationState.address_invalid,
                ValidationError("Invalid sender address"),
            )
        if not self._accepts(to_address):
            return VerificationResult.from_error(
                extrinsic_hash,
                VerificationState.address_invalid,
                ValidationError("Invalid recipient address"),
            )

        ss58_format = self.network.ss58_format
        sender = format_address(from_address, ss58_format)
        recipient = format_address(to_address, ss58_format)

        if not self._api_key:
            return VerificationResult.from_error(
                extrinsic_hash,
                VerificationState.unverified,
                ConfigurationError("Subscan API key is not configured"),
            )

        try:
            indexer = self._get_indexer()
            record = await indexer.get_extrinsic_detail(extrinsic_hash)
        except (IndexerError, TransportError) as e:
            logger.warning("Lookup of extrinsic %s failed: %s", extrinsic_hash, e)
            return VerificationResult.from_error(
                extrinsic_hash, VerificationState.lookup_failed, e
            )
        except httpx.HTTPError as e:
            logger.error("HTTP error looking up extrinsic %s: %s", extrinsic_hash, e)
            return VerificationResult.failure(
                extrinsic_hash,
                VerificationState.lookup_failed,
                str(e),
                ErrorKind.transport,
            )
        except Exception as e:
            logger.exception("Unexpected error looking up extrinsic %s", extrinsic_hash)
            return VerificationResult.failure(
                extrinsic_hash,
                VerificationState.lookup_failed,
                str(e),
                ErrorKind.unexpected,
            )

        details = VerificationDetails(
            block_number=record.block_number,
            timestamp=record.block_timestamp,
            fee=record.fee or "0",
            expected_amount=str(expected_amount),
        )

        mismatch = self._check_extrinsic(record, sender)
        if mismatch is not None:
            logger.warning("Extrinsic %s rejected: %s", extrinsic_hash, mismatch)
            return VerificationResult.from_error(
                extrinsic_hash, VerificationState.mismatched, mismatch, details
            )

        if self.verify_amount and isinstance(indexer, BlockLookup):
            outcome = await self._match_transfer_event(
                indexer, extrinsic_hash, record, sender, recipient, details
            )
            if isinstance(outcome, VerificationResult):
                return outcome
            details = outcome

        logger.info(
            "Payment %s confirmed in block %s (amount verified: %s)",
            extrinsic_hash,
            record.block_number,
            details.amount_verified,
        )
        return VerificationResult(
            verified=True,
            status=PaymentStatus.CONFIRMED,
            state=VerificationState.matched,
            extrinsic_hash=extrinsic_hash,
            details=details,
        )

    def _check_extrinsic(
        self, record: ExtrinsicRecord, sender: str
    ) -> Optional[SemanticMismatchError]:
        if not is_transfer_call(record):
            return SemanticMismatchError(
                f"Extrinsic is not a balance transfer "
                f"({record.call_module}.{record.call_function})"
            )
        if not record.success:
            return SemanticMismatchError("Extrinsic was not successful")
        if record.account_id and not is_same_address(record.account_id, sender):
            return SemanticMismatchError("Sender does not match extrinsic signer")
        return None

    async def _match_transfer_event(
        self,
        indexer: BlockLookup,
        extrinsic_hash: str,
        record: ExtrinsicRecord,
        sender: str,
        recipient: str,
        details: VerificationDetails,
    ) -> VerificationResult | VerificationDetails:
        """Prove (from, to, amount) from block events.

        Returns a failed result on mismatch, or the details with the observed
        amount filled in.
        """
        try:
            block = await indexer.get_block_detail(block_num=record.block_number)
        except (IndexerError, TransportError) as e:
            return VerificationResult.from_error(
                extrinsic_hash, VerificationState.lookup_failed, e, details
            )
        except httpx.HTTPError as e:
            return VerificationResult.failure(
                extrinsic_hash,
                VerificationState.lookup_failed,
                str(e),
                ErrorKind.transport,
                details,
            )
        except Exception as e:
            logger.exception("Unexpected error fetching block %s", record.block_number)
            return VerificationResult.failure(
                extrinsic_hash,
                VerificationState.lookup_failed,
                str(e),
                ErrorKind.unexpected,
                details,
            )

        transfers = [
            parsed
            for event in block.events
            if (event.extrinsic_hash or "").lower() == extrinsic_hash.lower()
            for parsed in [parse_transfer_event(event)]
            if parsed is not None
        ]
        if not transfers:
            return VerificationResult.from_error(
                extrinsic_hash,
                VerificationState.mismatched,
                SemanticMismatchError("No transfer event found in extrinsic"),
                details,
            )

        for transfer in transfers:
            if (
                is_same_address(transfer["from"], sender)
                and is_same_address(transfer["to"], recipient)
                and _same_amount(transfer["amount"], details.expected_amount)
            ):
                return replace(
                    details, observed_amount=transfer["amount"], amount_verified=True
                )

        return VerificationResult.from_error(
            extrinsic_hash,
            VerificationState.mismatched,
            SemanticMismatchError("Transfer details do not match expected values"),
            replace(details, observed_amount=transfers[0]["amount"]),
        )
