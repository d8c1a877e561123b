"""Notification exceptions."""

from __future__ import annotations

from shared.domain.exceptions import DomainValidationError


class UnknownTemplate(DomainValidationError):
    """The requested e-mail template does not exist."""
