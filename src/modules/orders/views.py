"""Order API views.

Exposes ``OrderService`` over HTTP with a DRF ViewSet.  The service
returns ``OrderResult`` values; failures are translated into HTTP status
codes by ``error_response`` and the view never swallows generic
exceptions.
"""

from __future__ import annotations

from typing import Optional

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import BasePermission, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import Caller, CreateOrderDTO, CreateOrderItemDTO
from modules.orders.filters import OrderFilter
from modules.orders.providers import get_order_service
from modules.orders.results import ErrorKind, OrderError, OrderResult
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.ILLEGAL_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNIQUENESS_CONFLICT: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.PERSISTENCE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: OrderError) -> Response:
    body = {"detail": error.message, "code": error.kind.value}
    if error.product_id is not None:
        body["product_id"] = error.product_id
    return Response(body, status=ERROR_STATUS[error.kind])


def _parse_pk(pk: Optional[str]) -> Optional[int]:
    try:
        return int(pk)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _not_found() -> Response:
    return error_response(OrderError(ErrorKind.NOT_FOUND, "Order not found."))


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    serializer_class = OrderSerializer
    pagination_class = StandardResultsSetPagination
    filterset_class = OrderFilter
    search_fields = [
        "order_number",
        "user__first_name",
        "user__last_name",
        "user__email",
    ]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = get_order_service()

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "partial_update":
            return [IsAuthenticated(), IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "by_number"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        request = getattr(self, "request", None)
        user = getattr(request, "user", None)
        return self._service.list_orders(Caller.from_user(user))

    def _caller(self, request: Request) -> Caller:
        return Caller.from_user(request.user)

    def _respond(
        self, result: OrderResult, success_status: int = status.HTTP_200_OK
    ) -> Response:
        if result.error is not None:
            return error_response(result.error)
        data = OrderSerializer(result.order).data
        if result.warnings:
            data = {**data, "warnings": list(result.warnings)}
        return Response(data, status=success_status)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer})
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            user_id=self._caller(request).user_id,
            payment_method=data["payment_method"],
            currency=data.get("currency"),
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                )
                for item in data["items"]
            ],
            shipping_address_id=data.get("shipping_address_id"),
            billing_address_id=data.get("billing_address_id"),
            notes=data.get("notes", ""),
        )

        result = self._service.create_order(dto)
        return self._respond(result, success_status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(responses={200: OrderListSerializer(many=True)})
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment method, date range, user) is handled by
        ``OrderFilter``; ``search`` matches the order number and the
        customer's name or email.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order_id = _parse_pk(pk)
        if order_id is None:
            return _not_found()
        return self._respond(self._service.get_order(order_id, self._caller(request)))

    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<order_number>[^/.]+)")
    def by_number(self, request: Request, order_number: str | None = None) -> Response:
        """GET /api/v1/orders/by-number/{order_number}/"""
        result = self._service.get_order_by_number(
            order_number or "", self._caller(request)
        )
        return self._respond(result)

    # ------------------------------------------------------------------
    # Status Update (staff)
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderStatusSerializer, responses={200: OrderSerializer})
    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        A move to ``cancelled`` releases stock exactly like ``/cancel/``.
        """
        order_id = _parse_pk(pk)
        if order_id is None:
            return _not_found()

        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self._service.update_status(
            order_id=order_id,
            new_status=serializer.validated_data["status"],
            caller=self._caller(request),
            notes=serializer.validated_data.get("notes", ""),
        )
        return self._respond(result)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @extend_schema(request=CancelOrderSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases its reserved stock.
        """
        order_id = _parse_pk(pk)
        if order_id is None:
            return _not_found()

        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self._service.cancel_order(
            order_id=order_id,
            caller=self._caller(request),
            reason=serializer.validated_data.get("reason") or None,
        )
        return self._respond(result)
