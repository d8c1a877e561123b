"""Error taxonomy shared by the bounded contexts.

Module-level exceptions (``modules.<context>.exceptions``) derive from
these bases so callers can reason about a failure class without knowing
every concrete error:

- ``DomainValidationError``: invalid input, rejected before any write.
- ``AuthorizationError``: missing or wrong user, rejected before reads.
- ``ExternalCollaboratorError``: database, payment or e-mail call failed;
  safe to retry.
"""

from __future__ import annotations


class DomainError(Exception):
    """Root of every business error raised by the service layer."""


class DomainValidationError(DomainError):
    """Input failed validation; nothing was written."""


class AuthorizationError(DomainError):
    """The caller is unauthenticated or not allowed to touch the resource."""


class NotFoundError(DomainError):
    """The referenced entity does not exist for this caller."""


class ExternalCollaboratorError(DomainError):
    """A backend, payment or e-mail collaborator call failed."""
