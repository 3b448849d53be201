"""Payment verification route.

Mount with ``app.include_router(router, prefix="/api/v1")``. Authentication
and persistence belong to the host application.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .verifier import PaymentVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


class VerifyPaymentRequest(BaseModel):
    """Verify an on-chain payment."""
    extrinsic_hash: str = Field(..., min_length=1)
    from_address: str = Field(..., description="Sender SS58 address")
    expected_to: str = Field(..., description="Recipient SS58 address")
    expected_amount: str = Field(..., description="Amount in chain units")


def get_verifier() -> PaymentVerifier:
    return PaymentVerifier.from_settings()


Verifier = Annotated[PaymentVerifier, Depends(get_verifier)]


# ── POST /payments/verify ─────────────────────────────────────────────────

@router.post("/payments/verify")
async def verify_payment(body: VerifyPaymentRequest, verifier: Verifier):
    """
    Verify that an extrinsic is a successful transfer between the given parties.

    Returns 200 with the verification result when confirmed, 400 otherwise.
    """
    result = await verifier.verify_payment(
        body.extrinsic_hash,
        body.from_address,
        body.expected_to,
        body.expected_amount,
    )

    if result.verified:
        return {
            **result.to_dict(),
            "explorer_url": verifier.explorer_url(body.extrinsic_hash),
            "message": "Payment verified successfully on the blockchain",
        }

    logger.info(
        f"Payment verification failed: tx_hash={body.extrinsic_hash} "
        f"kind={result.error_kind.value if result.error_kind else None}"
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.to_dict())
