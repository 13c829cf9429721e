import time
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import (
    BusinessRuleViolation,
    EmptyCart,
    InsufficientStock,
    NotFound,
    OwnershipViolation,
)
from shared.observability import (
    ecomm_checkout_duration_seconds,
    ecomm_checkout_total,
    ecomm_stock_rejections_total,
)
from shared.security import CurrentUser, Role
from services.cart_service.repository import CartRepository
from services.product_service.repository import ProductRepository, ShopRepository

from .models import CANCELLABLE_STATUSES, FINAL_STATUSES, Order, OrderLine
from .repository import OrderRepository
from .schemas import CheckoutRequest

logger = structlog.get_logger(__name__)


class CheckoutService:
    """
    Turns the caller's cart into an order.

    The whole conversion is one unit of work on the request's session: the
    order, its lines, every stock decrement and the cart purge are committed
    together or rolled back together. Stock is taken with a conditional
    UPDATE, so two buyers racing for the last unit cannot both succeed.
    """

    @staticmethod
    async def checkout(db: AsyncSession, user_id: int, data: CheckoutRequest) -> Order:
        started = time.perf_counter()
        try:
            order = await CheckoutService._place_order(db, user_id, data)
            await db.commit()
        except Exception:
            await db.rollback()
            ecomm_checkout_total.labels(status="failed").inc()
            raise
        finally:
            ecomm_checkout_duration_seconds.observe(time.perf_counter() - started)

        ecomm_checkout_total.labels(status="success").inc()
        logger.info(
            "checkout_completed",
            user_id=user_id,
            order_id=order.id,
            lines=len(order.lines),
            total_amount=str(order.total_amount),
        )
        return await OrderRepository.reload(db, order.id)

    @staticmethod
    async def _place_order(db: AsyncSession, user_id: int, data: CheckoutRequest) -> Order:
        cart_lines = await CartRepository.active_lines(db, user_id)
        if not cart_lines:
            raise EmptyCart()

        # 1. Fail fast, naming the first product that cannot be supplied
        for line in cart_lines:
            product = line.product
            if product is None or not product.is_active:
                raise BusinessRuleViolation(
                    f"{product.name if product else 'A product in your cart'} is no longer available"
                )
            if product.stock < line.quantity:
                ecomm_stock_rejections_total.labels(stage="checkout").inc()
                raise InsufficientStock(product.name, product.id)

        # 2. Order plus frozen copies of the cart lines
        order_lines = [
            OrderLine(
                product_id=line.product_id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
                notes=line.notes,
            )
            for line in cart_lines
        ]
        order = Order(
            user_id=user_id,
            shipping_address=data.shipping_address,
            phone=data.phone,
            payment_method=data.payment_method,
            notes=data.notes,
            status="pending",
            total_amount=sum((ol.line_total for ol in order_lines), Decimal("0.00")),
            lines=order_lines,
        )
        db.add(order)
        await db.flush()

        # 3. Reserve stock; a concurrent checkout may have taken it since step 1
        for line in cart_lines:
            if not await ProductRepository.decrement_stock_if_available(db, line.product_id, line.quantity):
                ecomm_stock_rejections_total.labels(stage="checkout").inc()
                raise InsufficientStock(line.product.name, line.product_id)

        # 4. Empty the cart inside the same transaction
        await CartRepository.clear(db, user_id, commit=False)
        return order


class OrderService:

    @staticmethod
    async def get_order(db: AsyncSession, user: CurrentUser, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order or (order.user_id != user.id and not user.is_admin):
            raise NotFound("Order not found")
        return order

    @staticmethod
    async def get_user_order(db: AsyncSession, user_id: int, order_id: int) -> Order:
        order = await OrderRepository.get_user_order(db, user_id, order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    @staticmethod
    async def list_orders(db: AsyncSession, user_id: int, page: int, per_page: int):
        return await OrderRepository.list_for_user(db, user_id, (page - 1) * per_page, per_page)

    @staticmethod
    async def cancel_order(db: AsyncSession, user_id: int, order_id: int) -> Order:
        order = await OrderService.get_user_order(db, user_id, order_id)
        if order.status not in CANCELLABLE_STATUSES:
            raise BusinessRuleViolation(f"Order in status '{order.status}' can no longer be cancelled")
        return await OrderService._apply_status(db, order, "cancelled")

    @staticmethod
    async def update_status(db: AsyncSession, user: CurrentUser, order_id: int, status: str) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFound("Order not found")
        await OrderService._check_can_manage(db, user, order, status)
        if order.status in FINAL_STATUSES:
            raise BusinessRuleViolation(f"Order in status '{order.status}' can no longer change")
        if status == "cancelled" and order.status not in CANCELLABLE_STATUSES:
            raise BusinessRuleViolation(f"Order in status '{order.status}' can no longer be cancelled")
        return await OrderService._apply_status(db, order, status)

    @staticmethod
    async def _check_can_manage(db: AsyncSession, user: CurrentUser, order: Order, status: str) -> None:
        if user.role == Role.ADMIN.value:
            return
        if user.role == Role.SHOP.value:
            shop = await ShopRepository.get_by_user(db, user.id)
            if shop:
                product_ids = {line.product_id for line in order.lines}
                for product_id in product_ids:
                    product = await ProductRepository.get_product_by_id(db, product_id)
                    if product and product.shop_id == shop.id:
                        return
        if user.role == Role.DRIVER.value and order.status == "shipped" and status == "delivered":
            return
        raise OwnershipViolation("You are not allowed to manage this order")

    @staticmethod
    async def _apply_status(db: AsyncSession, order: Order, status: str) -> Order:
        previous = order.status
        try:
            if status == "cancelled":
                for line in order.lines:
                    await ProductRepository.restore_stock(db, line.product_id, line.quantity)
            order.status = status
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("order_status_changed", order_id=order.id, previous=previous, status=status)
        return await OrderRepository.reload(db, order.id)
