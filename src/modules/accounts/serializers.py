"""Accounts DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import Address, Profile


# ---------------------------------------------------------------------------
# Input Serializers (Write)
# ---------------------------------------------------------------------------


class CreateAddressSerializer(serializers.Serializer):
    """Validates a new address; blank or whitespace-only fields are rejected."""

    name = serializers.CharField(max_length=255)
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=120)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=120)
    is_default = serializers.BooleanField(default=False)


class UpdateProfileSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(
        max_length=32, required=False, default="", allow_blank=True
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "name",
            "street",
            "city",
            "postal_code",
            "country",
            "is_default",
            "created_at",
        ]
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "username", "email", "full_name", "phone", "role"]
        read_only_fields = fields
