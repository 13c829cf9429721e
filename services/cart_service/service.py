from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InsufficientStock, NotFound, OwnershipViolation
from shared.observability import ecomm_cart_operations_total, ecomm_stock_rejections_total
from services.product_service.repository import ProductRepository

from .models import CartLine
from .repository import CartRepository
from .schemas import CartViolation

logger = structlog.get_logger(__name__)


def _merge(line: CartLine, quantity: int, price: Decimal, notes: Optional[str]) -> CartLine:
    """Re-adding a product raises the quantity and re-prices the line at the current price."""
    line.quantity += quantity
    line.unit_price = price
    line.line_total = Decimal(line.quantity) * price
    line.notes = notes
    return line


class CartService:
    """
    Per-user cart. Every call takes the authenticated user id explicitly.

    Lines keep the unit price captured when they were written; `validate`
    reports lines whose captured price no longer matches the catalog.
    """

    @staticmethod
    async def add_item(
        db: AsyncSession, user_id: int, product_id: int, quantity: int, notes: Optional[str] = None
    ) -> CartLine:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product or not product.is_active:
            raise NotFound("Product not found")

        if product.stock < quantity:
            ecomm_stock_rejections_total.labels(stage="cart").inc()
            raise InsufficientStock(product.name, product.id)

        price = product.price
        line = await CartRepository.get_active_line(db, user_id, product_id)
        if line:
            line = await CartRepository.save(db, _merge(line, quantity, price, notes))
        else:
            try:
                line = await CartRepository.save(db, CartLine(
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=price,
                    line_total=Decimal(quantity) * price,
                    notes=notes,
                    is_active=True,
                ))
            except IntegrityError:
                # A concurrent add created the line first; fold this add into it
                await db.rollback()
                line = await CartRepository.get_active_line(db, user_id, product_id)
                if line is None:
                    raise
                line = await CartRepository.save(db, _merge(line, quantity, price, notes))
        ecomm_cart_operations_total.labels(operation="add").inc()
        logger.info(
            "cart_item_added",
            user_id=user_id,
            product_id=product_id,
            quantity=line.quantity,
        )
        return line

    @staticmethod
    async def _owned_line(db: AsyncSession, user_id: int, line_id: int) -> CartLine:
        line = await CartRepository.get_line(db, line_id)
        if not line:
            raise NotFound("Cart item not found")
        if line.user_id != user_id:
            raise OwnershipViolation("You are not allowed to modify this cart item")
        return line

    @staticmethod
    async def update_quantity(db: AsyncSession, user_id: int, line_id: int, quantity: int) -> CartLine:
        line = await CartService._owned_line(db, user_id, line_id)
        if line.product is None or line.product.stock < quantity:
            ecomm_stock_rejections_total.labels(stage="cart").inc()
            name = line.product.name if line.product else f"product {line.product_id}"
            raise InsufficientStock(name, line.product_id)

        line.quantity = quantity
        line.line_total = Decimal(quantity) * line.unit_price
        line = await CartRepository.save(db, line)
        ecomm_cart_operations_total.labels(operation="update").inc()
        logger.info("cart_item_updated", user_id=user_id, line_id=line_id, quantity=quantity)
        return line

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: int, line_id: int) -> None:
        line = await CartService._owned_line(db, user_id, line_id)
        await CartRepository.delete_line(db, line)
        ecomm_cart_operations_total.labels(operation="remove").inc()
        logger.info("cart_item_removed", user_id=user_id, line_id=line_id)

    @staticmethod
    async def clear(db: AsyncSession, user_id: int) -> None:
        await CartRepository.clear(db, user_id)
        ecomm_cart_operations_total.labels(operation="clear").inc()
        logger.info("cart_cleared", user_id=user_id)

    @staticmethod
    async def items(db: AsyncSession, user_id: int) -> list[CartLine]:
        return await CartRepository.active_lines(db, user_id)

    @staticmethod
    async def total(db: AsyncSession, user_id: int) -> Decimal:
        return await CartRepository.total(db, user_id)

    @staticmethod
    async def count(db: AsyncSession, user_id: int) -> int:
        return await CartRepository.count(db, user_id)

    @staticmethod
    async def validate(db: AsyncSession, user_id: int) -> list[CartViolation]:
        """Re-check every active line against the live catalog. Read-only."""
        violations = []
        for line in await CartRepository.active_lines(db, user_id):
            product = line.product
            if product is None or not product.is_active:
                violations.append(CartViolation(
                    line_id=line.id,
                    product_id=line.product_id,
                    product_name=product.name if product else None,
                    kind="unavailable",
                    message=f"{product.name if product else 'Product'} is no longer available",
                ))
                continue
            if product.stock < line.quantity:
                violations.append(CartViolation(
                    line_id=line.id,
                    product_id=product.id,
                    product_name=product.name,
                    kind="insufficient_stock",
                    message=f"Requested quantity of {product.name} is not available in stock",
                ))
            if product.price != line.unit_price:
                violations.append(CartViolation(
                    line_id=line.id,
                    product_id=product.id,
                    product_name=product.name,
                    kind="price_changed",
                    message=f"The price of {product.name} has changed",
                ))
        return violations
