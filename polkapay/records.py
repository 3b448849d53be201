"""Payment records and their status lifecycle.

A record is created by an operator action, updated once by the verification
outcome, and frozen once CONFIRMED:

    PENDING -> PROCESSING -> CONFIRMED | FAILED

Records are immutable models; every lifecycle helper returns a new record.
Persisting them, and serialising concurrent updates of the same record, is
the caller's job.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydantic import BaseModel, Field

from .errors import StatusTransitionError

if TYPE_CHECKING:
    from .verifier import VerificationResult


class PaymentStatus(str, Enum):
    """Payment record lifecycle states."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


_ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PROCESSING}),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.CONFIRMED, PaymentStatus.FAILED}),
    PaymentStatus.CONFIRMED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentRecord(BaseModel):
    """A payout to a submission winner (mirrors the payments table)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    submission_id: str
    organization_id: str
    recipient_address: str
    amount: str  # chain units
    token: str
    extrinsic_hash: Optional[str] = None
    block_number: Optional[int] = None
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None
    paid_by: str
    verified_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True

    @property
    def is_terminal(self) -> bool:
        return not _ALLOWED_TRANSITIONS[self.status]


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    """Return True if moving from *current* to *target* is allowed."""
    return target in _ALLOWED_TRANSITIONS[current]


def create_payment_record(
    submission_id: str,
    organization_id: str,
    recipient_address: str,
    amount: str,
    token: str,
    paid_by: str,
    extrinsic_hash: Optional[str] = None,
    *,
    now: Callable[[], datetime] = _now,
    record_id: Optional[str] = None,
) -> PaymentRecord:
    """Build a new payment record. No I/O.

    With an extrinsic hash the payment has already been sent, so the record
    starts PROCESSING with ``paid_at`` stamped; without one it is PENDING.
    """
    fields: dict[str, Any] = {
        "submission_id": submission_id,
        "organization_id": organization_id,
        "recipient_address": recipient_address,
        "amount": amount,
        "token": token,
        "extrinsic_hash": extrinsic_hash,
        "status": PaymentStatus.PROCESSING if extrinsic_hash else PaymentStatus.PENDING,
        "paid_at": now() if extrinsic_hash else None,
        "paid_by": paid_by,
    }
    if record_id is not None:
        fields["id"] = record_id
    return PaymentRecord(**fields)


def transition(
    record: PaymentRecord,
    status: PaymentStatus,
    **updates: Any,
) -> PaymentRecord:
    """Return a copy of *record* moved to *status*.

    Raises:
        StatusTransitionError: if the lifecycle does not allow the move.
    """
    if not can_transition(record.status, status):
        raise StatusTransitionError(
            f"Cannot move payment {record.id} from {record.status.value} to {status.value}"
        )
    return record.model_copy(update={**updates, "status": status})


def mark_processing(
    record: PaymentRecord,
    extrinsic_hash: str,
    *,
    now: Callable[[], datetime] = _now,
) -> PaymentRecord:
    """Attach the extrinsic hash of a sent payment to a PENDING record."""
    return transition(
        record,
        PaymentStatus.PROCESSING,
        extrinsic_hash=extrinsic_hash,
        paid_at=record.paid_at or now(),
    )


def apply_verification(
    record: PaymentRecord,
    result: "VerificationResult",
    *,
    now: Callable[[], datetime] = _now,
) -> PaymentRecord:
    """Settle a PROCESSING record from a verification outcome."""
    updates: dict[str, Any] = {"verified_at": now()}
    if result.details is not None:
        updates["block_number"] = result.details.block_number
    if result.error:
        updates["metadata"] = {
            **record.metadata,
            "verification_error": result.error,
            "verification_error_kind": result.error_kind.value if result.error_kind else None,
        }
    target = PaymentStatus.CONFIRMED if result.verified else PaymentStatus.FAILED
    return transition(record, target, **updates)
