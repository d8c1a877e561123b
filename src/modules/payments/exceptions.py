"""Payment domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import DomainValidationError, ExternalCollaboratorError


class WebhookVerificationError(DomainValidationError):
    """The callback signature is missing, stale or does not match the secret."""


class WebhookPayloadError(DomainValidationError):
    """A verified callback body does not match the expected schema."""


class PaymentGatewayError(ExternalCollaboratorError):
    """The payment provider rejected or failed a request; safe to retry."""
