"""Order service layer (Use Cases).

Orchestrates order creation, status management and cancellation.  Every
write runs in one unit of work owned by the service: stock reservation,
order-number minting and the order/items/history inserts commit or roll
back together, and events are published only after commit.

Business rules enforced:
- Every item is priced from the catalog; a missing product fails the order.
- Stock is reserved through the ledger; any shortfall fails the whole order.
- Status transitions are validated against the state machine before any
  write, under a row lock on the order.
- Cancellation releases exactly the persisted line-item quantities, once.

Commands and look-ups return an ``OrderResult``; expected failures are
reported as an ``OrderError`` instead of being raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import structlog
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import QuerySet

from modules.catalog.exceptions import InsufficientStock
from modules.catalog.ledger import StockMovement
from modules.orders.constants import DEFAULT_CANCEL_NOTE, OrderStatus, PaymentStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    AddressNotFound,
    InvalidOrderStatus,
    OrderDomainError,
    OrderNotFound,
    OrderNumberConflict,
    ProductNotFound,
)
from modules.orders.results import ErrorKind, OrderError, OrderResult
from modules.orders.state_machine import is_legal, is_terminal
from modules.orders.totals import OrderTotals, PricedLine

if TYPE_CHECKING:
    from modules.addresses.models import Address
    from modules.addresses.repositories.interfaces import IAddressRepository
    from modules.catalog.dtos import ProductSnapshot
    from modules.catalog.ledger import StockReservationLedger
    from modules.catalog.repositories.interfaces import ICatalogLookup
    from modules.orders.dtos import Caller, CreateOrderDTO
    from modules.orders.emitter import OrderEventEmitter
    from modules.orders.models import Order
    from modules.orders.numbering import OrderNumberGenerator
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.totals import TotalsCalculator

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives every collaborator via constructor injection (DIP); see
    ``modules.orders.providers`` for the production wiring.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        catalog: ICatalogLookup,
        address_repository: IAddressRepository,
        ledger: StockReservationLedger,
        totals_calculator: TotalsCalculator,
        number_generator: OrderNumberGenerator,
        emitter: OrderEventEmitter,
        create_max_attempts: int = 3,
        using: str = "default",
    ) -> None:
        self._order_repo = order_repository
        self._catalog = catalog
        self._address_repo = address_repository
        self._ledger = ledger
        self._calculator = totals_calculator
        self._numbers = number_generator
        self._emitter = emitter
        self._create_max_attempts = create_max_attempts
        self._using = using

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> OrderResult:
        """Create a new order with atomic stock reservation.

        Steps:
        1. Price every item from the catalog (snapshot name, SKU, price).
        2. Resolve shipping / billing addresses for the ordering user.
        3. Compute totals.
        4. In one unit of work: reserve stock, mint the order number,
           insert order + items + ``pending`` history.  An order-number
           collision at insert time retries the whole unit of work.
        5. After commit: emit ``OrderCreated``.
        """
        log = logger.bind(user_id=dto.user_id, item_count=len(dto.items))
        log.info("order.creation_started")

        try:
            lines, snapshots = self._price_items(dto)
            shipping_address, billing_address = self._resolve_addresses(dto)
            totals = self._calculator.calculate(lines, dto.discount_amount)
            order = self._create_with_retry(
                dto, lines, snapshots, totals, shipping_address, billing_address
            )
        except InsufficientStock as exc:
            log.warning(
                "order.creation_rejected",
                kind=ErrorKind.INSUFFICIENT_STOCK.value,
                product_id=exc.product_id,
            )
            return OrderResult.failure(_insufficient_stock_error(exc))
        except OrderDomainError as exc:
            log.warning(
                "order.creation_rejected", kind=exc.kind.value, reason=exc.message
            )
            return OrderResult.failure(exc.to_error())
        except DatabaseError:
            log.exception("order.persistence_failed", operation="create")
            return OrderResult.failure(_persistence_error())

        log.info(
            "order.created",
            order_id=order.id,
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return OrderResult.success(self._order_repo.get_by_id(order.id) or order)

    def update_status(
        self,
        order_id: int,
        new_status: str,
        caller: Caller,
        notes: str = "",
    ) -> OrderResult:
        """Move an order to ``new_status``.

        A move to ``cancelled`` is delegated to ``cancel_order`` so stock
        is always released.  The order row stays locked until commit;
        illegal transitions are rejected before any write.
        """
        if new_status == OrderStatus.CANCELLED:
            return self.cancel_order(order_id, caller, reason=notes or None)

        log = logger.bind(order_id=order_id, new_status=new_status)
        try:
            with transaction.atomic(using=self._using):
                order = self._lock_visible_order(order_id, caller)
                old_status = order.status
                if not is_legal(old_status, new_status):
                    log.warning(
                        "order.invalid_transition",
                        current_status=old_status,
                        terminal=is_terminal(old_status),
                    )
                    raise InvalidOrderStatus(
                        f"Cannot transition from {old_status} to {new_status}.",
                        details={"current_status": old_status, "new_status": new_status},
                    )
                self._order_repo.record_transition(order, new_status, notes)
                self._emitter.emit_after_commit(
                    OrderStatusChanged.from_order(order, old_status=old_status)
                )
        except OrderDomainError as exc:
            return OrderResult.failure(exc.to_error())
        except DatabaseError:
            log.exception("order.persistence_failed", operation="update_status")
            return OrderResult.failure(_persistence_error())

        log.info("order.status_updated", old_status=old_status)
        return OrderResult.success(self._order_repo.get_by_id(order_id) or order)

    def cancel_order(
        self,
        order_id: int,
        caller: Caller,
        reason: Optional[str] = None,
    ) -> OrderResult:
        """Cancel an order and release its reserved stock.

        The order row is locked **first**, so two concurrent cancellations
        serialize and the second one sees a terminal status: stock is
        released at most once.
        """
        log = logger.bind(order_id=order_id)
        warnings: Tuple[str, ...] = ()
        try:
            with transaction.atomic(using=self._using):
                order = self._lock_visible_order(order_id, caller)
                old_status = order.status
                if not is_legal(old_status, OrderStatus.CANCELLED):
                    log.warning(
                        "order.cancel_not_allowed",
                        current_status=old_status,
                        terminal=is_terminal(old_status),
                    )
                    raise InvalidOrderStatus(
                        f"Cannot cancel order in status {old_status}.",
                        details={"current_status": old_status},
                    )

                self._order_repo.record_transition(
                    order, OrderStatus.CANCELLED, reason or DEFAULT_CANCEL_NOTE
                )
                unmatched = self._ledger.release(
                    StockMovement(item.product_id, item.quantity)
                    for item in order.items.all()
                )
                if unmatched:
                    log.error("order.stock_release_unmatched", product_ids=unmatched)
                    warnings = tuple(
                        f"Stock for product {product_id} could not be restored."
                        for product_id in unmatched
                    )
                self._emitter.emit_after_commit(
                    OrderCancelled.from_order(order, old_status=old_status)
                )
        except OrderDomainError as exc:
            return OrderResult.failure(exc.to_error())
        except DatabaseError:
            log.exception("order.persistence_failed", operation="cancel")
            return OrderResult.failure(_persistence_error())

        log.info("order.cancelled", old_status=old_status)
        return OrderResult.success(
            self._order_repo.get_by_id(order_id) or order, warnings=warnings
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int, caller: Caller) -> OrderResult:
        """Another user's order is reported exactly like a missing one."""
        order = self._order_repo.get_by_id(order_id)
        return self._visible_result(order, caller, f"Order {order_id} not found.")

    def get_order_by_number(self, order_number: str, caller: Caller) -> OrderResult:
        order = self._order_repo.get_by_number(order_number)
        return self._visible_result(order, caller, f"Order {order_number} not found.")

    def list_orders(
        self, caller: Caller, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[Order]:
        """Return the caller's own orders, or every order for staff."""
        scoped: Dict[str, Any] = dict(filters or {})
        if not caller.is_privileged:
            if caller.user_id is None:
                return self._order_repo.list().none()
            scoped["user_id"] = caller.user_id
        return self._order_repo.list(scoped)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _price_items(
        self, dto: CreateOrderDTO
    ) -> Tuple[List[PricedLine], Dict[int, ProductSnapshot]]:
        lines: List[PricedLine] = []
        snapshots: Dict[int, ProductSnapshot] = {}
        for item in dto.items:
            product = self._catalog.get_product(item.product_id)
            if product is None:
                raise ProductNotFound(
                    f"Product {item.product_id} not found.",
                    product_id=item.product_id,
                )
            snapshots[product.id] = product
            lines.append(PricedLine(product.id, item.quantity, product.price))
        return lines, snapshots

    def _resolve_addresses(
        self, dto: CreateOrderDTO
    ) -> Tuple[Optional[Address], Optional[Address]]:
        resolved = []
        for field_name in ("shipping_address_id", "billing_address_id"):
            address_id = getattr(dto, field_name)
            if address_id is None:
                resolved.append(None)
                continue
            address = self._address_repo.get_for_user(address_id, dto.user_id)
            if address is None:
                raise AddressNotFound(
                    f"Address {address_id} not found.",
                    details={"field": field_name},
                )
            resolved.append(address)
        return resolved[0], resolved[1]

    def _create_with_retry(
        self,
        dto: CreateOrderDTO,
        lines: Sequence[PricedLine],
        snapshots: Dict[int, ProductSnapshot],
        totals: OrderTotals,
        shipping_address: Optional[Address],
        billing_address: Optional[Address],
    ) -> Order:
        for attempt in range(1, self._create_max_attempts + 1):
            try:
                with transaction.atomic(using=self._using):
                    self._ledger.reserve(
                        StockMovement(line.product_id, line.quantity) for line in lines
                    )
                    order_number = self._numbers.generate(
                        self._order_repo.order_number_exists
                    )
                    order = self._order_repo.create(
                        order_data={
                            "order_number": order_number,
                            "user_id": dto.user_id,
                            "payment_method": dto.payment_method,
                            "payment_status": PaymentStatus.PENDING,
                            "currency": dto.currency,
                            "shipping_address": shipping_address,
                            "billing_address": billing_address,
                            "notes": dto.notes,
                            **totals._asdict(),
                        },
                        items=[
                            {
                                "product_id": line.product_id,
                                "product_name": snapshots[line.product_id].name,
                                "product_sku": snapshots[line.product_id].sku,
                                "quantity": line.quantity,
                                "unit_price": line.unit_price,
                            }
                            for line in lines
                        ],
                    )
                    self._emitter.emit_after_commit(OrderCreated.from_order(order))
                    return order
            except IntegrityError as exc:
                if "order_number" not in str(exc):
                    raise
                logger.warning(
                    "order.number_collision_retry",
                    attempt=attempt,
                    max_attempts=self._create_max_attempts,
                )
        raise OrderNumberConflict(
            "Could not allocate a unique order number.",
            details={"attempts": self._create_max_attempts},
        )

    def _lock_visible_order(self, order_id: int, caller: Caller) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None or not caller.can_see(order.user_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _visible_result(
        order: Optional[Order], caller: Caller, message: str
    ) -> OrderResult:
        if order is None or not caller.can_see(order.user_id):
            return OrderResult.failure(OrderError(ErrorKind.NOT_FOUND, message))
        return OrderResult.success(order)


def _insufficient_stock_error(exc: InsufficientStock) -> OrderError:
    return OrderError(
        kind=ErrorKind.INSUFFICIENT_STOCK,
        message=str(exc),
        product_id=exc.product_id,
        details={"requested": exc.requested, "available": exc.available},
    )


def _persistence_error() -> OrderError:
    return OrderError(
        kind=ErrorKind.PERSISTENCE,
        message="The order store is unavailable. Please retry later.",
    )
