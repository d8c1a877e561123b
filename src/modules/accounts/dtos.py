"""Accounts DTOs for the Service Layer.

- ``CreateAddressDTO``: a new address; every text field is required and
  blank values are rejected here, before the service touches the store.
- ``UpdateProfileDTO``: profile edits.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class CreateAddressDTO(BaseModel):
    """Immutable DTO for address creation.

    ``is_default`` is the *requested* flag; the address book may still make
    the address default when it is the user's first one.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    street: str
    city: str
    postal_code: str
    country: str
    is_default: bool = False

    @field_validator("name", "street", "city", "postal_code", "country")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("This field is required.")
        return v.strip()


class UpdateProfileDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str
    phone: str = ""

    @field_validator("full_name")
    @classmethod
    def full_name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Full name is required.")
        return v.strip()
