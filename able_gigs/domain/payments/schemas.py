"""Payment schemas - Pydantic models for holds, adjustments and history"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HoldFundsRequest(BaseModel):
    gigId: str
    amountInCents: Optional[int] = Field(None, gt=0, description="Defaults to the gig's discounted total")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class AdjustmentRequest(BaseModel):
    newFinalRate: float = Field(..., gt=0)
    newFinalHours: float = Field(..., gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class HoldResponse(BaseModel):
    paymentId: str
    paymentIntentId: str
    status: str
    amountGross: int
    ableFeeAmount: int
    message: str = "Payment approved"


class AdjustmentResponse(BaseModel):
    gigId: str
    finalRate: float
    finalHours: float
    finalAgreedPrice: float
    additionalHoldCents: int = 0


class FinalizeResponse(BaseModel):
    gigId: str
    status: str
    capturedCents: int


class SetupIntentResponse(BaseModel):
    clientSecret: str
    stripeCustomerId: str


class AccountLinkResponse(BaseModel):
    url: str


class StripeStatusResponse(BaseModel):
    accountId: Optional[str] = None
    stripeAccountStatus: Optional[str] = None
    canReceivePayouts: bool
    transfersActive: bool = False
    payoutsEnabled: bool = False


class BuyerPayment(BaseModel):
    id: str
    gigId: Optional[str] = None
    gigType: Optional[str] = None
    workerName: Optional[str] = None
    date: Optional[datetime] = None
    status: Optional[str] = None
    paymentStatus: str
    invoiceUrl: Optional[str] = None
    amount: int
    currency: str
