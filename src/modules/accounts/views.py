"""Accounts API views: the caller's profile and address book.

Every endpoint is scoped to ``request.user``; another user's address is
indistinguishable from a missing one (404).
"""

from __future__ import annotations

from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.dtos import CreateAddressDTO, UpdateProfileDTO
from modules.accounts.exceptions import AddressNotFound
from modules.accounts.models import Address
from modules.accounts.repositories.django_repository import (
    AddressDjangoRepository,
    ProfileDjangoRepository,
)
from modules.accounts.serializers import (
    AddressSerializer,
    CreateAddressSerializer,
    ProfileSerializer,
    UpdateProfileSerializer,
)
from modules.accounts.services import AddressBookService, ProfileService


def _parse_uuid(value: str | None) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class AddressViewSet(GenericViewSet):
    queryset = Address.objects.all()
    serializer_class = AddressSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressBookService(repository=AddressDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/addresses/"""
        addresses = self._service.list_addresses(request.user.id)
        return Response(AddressSerializer(addresses, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/addresses/"""
        serializer = CreateAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateAddressDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        address = self._service.add_address(request.user.id, dto)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        address_id = _parse_uuid(pk)
        try:
            if address_id is None:
                raise AddressNotFound(f"Address {pk} not found.")
            address = self._service.get_address(request.user.id, address_id)
        except AddressNotFound:
            return Response(
                {"detail": "Address not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(AddressSerializer(address).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/addresses/{pk}/"""
        address_id = _parse_uuid(pk)
        try:
            if address_id is None:
                raise AddressNotFound(f"Address {pk} not found.")
            self._service.delete_address(request.user.id, address_id)
        except AddressNotFound:
            return Response(
                {"detail": "Address not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def default(self, request: Request) -> Response:
        """GET /api/v1/addresses/default/: the checkout pre-selection."""
        address = self._service.default_for_checkout(request.user.id)
        if address is None:
            return Response(
                {"detail": "No address on file."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(AddressSerializer(address).data)


class ProfileView(APIView):
    """GET/PATCH /api/v1/me/profile/"""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProfileService(repository=ProfileDjangoRepository())

    def get(self, request: Request) -> Response:
        profile = self._service.get_profile(request.user.id)
        return Response(ProfileSerializer(profile).data)

    def patch(self, request: Request) -> Response:
        serializer = UpdateProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateProfileDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        profile = self._service.update_profile(request.user.id, dto)
        return Response(ProfileSerializer(profile).data)
