"""Payment DTOs.

Two families live here:

- service contracts (``CheckoutLineItem``, ``PaymentSession``,
  ``PaymentEvent``) that do not depend on the provider;
- typed records for the Stripe webhook body, validated right after the
  signature check so nothing downstream handles untyped dictionaries.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from django.db import models
from pydantic import BaseModel, ConfigDict, Field


class PaymentOutcome(models.TextChoices):
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


class CheckoutLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)


class PaymentSession(BaseModel):
    """Processor-hosted checkout the customer is redirected to."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    url: Optional[str] = None


class PaymentEvent(BaseModel):
    """A verified callback reduced to what reconciliation needs.

    ``outcome`` is ``None`` for events that carry no terminal payment
    result; those are acknowledged and ignored.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str
    event_type: str
    outcome: Optional[PaymentOutcome] = None
    order_id: Optional[UUID] = None
    payment_reference: str = ""
    checkout_session_id: str = ""


# ---------------------------------------------------------------------------
# Stripe webhook body
# ---------------------------------------------------------------------------


class StripeMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    order_id: Optional[UUID] = None


class StripeCheckoutSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    payment_status: str = ""
    payment_intent: Optional[str] = None
    metadata: StripeMetadata = Field(default_factory=StripeMetadata)


class StripeEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: Dict[str, Any]


class StripeEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: StripeEventData
