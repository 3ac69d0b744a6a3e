"""
Storefront Backend — Order Service (Checkout Orchestrator)
============================================================

What:  Turns a cart ({product_id, quantity} lines) into an order.
How:   One unit of work inside the request's session:

    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Load products│───▶│ Check stock  │───▶│ Snapshot     │───▶│ Flush    │
    │ + address    │    │ per line     │    │ prices, -qty │    │ (commit  │
    └──────────────┘    └──────────────┘    └──────────────┘    │ by dep.) │
                                                                └──────────┘

    Any failure raises, and the session dependency rolls the whole
    transaction back, stock updates included: a rejected order keeps no stock.

Stock moves through conditional UPDATEs (`stock = stock - :q WHERE stock >= :q`)
rather than writing back a value read earlier, so two checkouts racing for the
last unit cannot both succeed.

Duplicate product lines are merged before checking stock.
Cancelling a pending order puts its quantities back on the shelf.
"""

import logging
import uuid
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import DatabaseError, NotFoundError, ValidationError
from storefront.models.address import Address
from storefront.models.catalog import Product
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.user import User
from storefront.schemas.order import OrderCreate

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Allowed administrative transitions; cancellation has its own endpoint
STATUS_TRANSITIONS: Dict[str, set] = {
    OrderStatus.PENDING.value: {OrderStatus.PAID.value, OrderStatus.CANCELLED.value},
    OrderStatus.PAID.value: {OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value},
    OrderStatus.SHIPPED.value: {OrderStatus.DELIVERED.value},
    OrderStatus.DELIVERED.value: set(),
    OrderStatus.CANCELLED.value: set(),
}


class OrderService:

    async def create_order(self, db: AsyncSession, user: User, payload: OrderCreate) -> Order:
        quantities: "OrderedDict[uuid.UUID, int]" = OrderedDict()
        for line in payload.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        if payload.address_id is not None:
            address = await db.get(Address, payload.address_id)
            if address is None or address.user_id != user.id:
                raise NotFoundError(resource="address", resource_id=str(payload.address_id))

        result = await db.execute(select(Product).where(Product.id.in_(list(quantities))))
        products = {product.id: product for product in result.scalars()}

        items: List[OrderItem] = []
        total = Decimal("0")
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(resource="product", resource_id=str(product_id))
            if product.stock < quantity:
                raise ValidationError(
                    message=(
                        f"Only {product.stock} unit(s) of '{product.name}' in stock; "
                        f"{quantity} requested"
                    ),
                    field="items",
                    context={"product_id": str(product_id), "available": product.stock},
                )
            unit_price = Decimal(product.price).quantize(CENTS)
            items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=unit_price,
                )
            )
            total += unit_price * quantity
            await self._take_stock(db, product, quantity)

        order = Order(
            user_id=user.id,
            address_id=payload.address_id,
            status=OrderStatus.PENDING.value,
            total=total.quantize(CENTS),
            items=items,
        )
        db.add(order)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "create_order", "error": str(e)})

        logger.info(
            "Order %s placed by user %s: %d line(s), total %s",
            order.id,
            user.id,
            len(items),
            order.total,
        )
        return order

    async def list_orders(self, db: AsyncSession, user: User) -> List[Order]:
        result = await db.execute(
            select(Order).where(Order.user_id == user.id).order_by(Order.created_at.desc())
        )
        return list(result.scalars())

    async def get_order(self, db: AsyncSession, user: User, order_id: uuid.UUID) -> Order:
        order = await db.get(Order, order_id)
        # Admins may look at any order; customers only at their own
        if order is None or (order.user_id != user.id and not user.is_admin):
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    async def _take_stock(self, db: AsyncSession, product: Product, quantity: int) -> None:
        try:
            result = await db.execute(
                update(Product)
                .where(Product.id == product.id, Product.stock >= quantity)
                .values(stock=Product.stock - quantity)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "create_order", "error": str(e)})

        if result.rowcount == 0:
            # Another checkout took the units after our read
            available = await db.scalar(select(Product.stock).where(Product.id == product.id))
            logger.info(
                "Stock for product %s changed during checkout (%s left, %d requested)",
                product.id,
                available,
                quantity,
            )
            raise ValidationError(
                message=(
                    f"Only {available or 0} unit(s) of '{product.name}' in stock; "
                    f"{quantity} requested"
                ),
                field="items",
                context={"product_id": str(product.id), "available": available or 0},
            )
        db.expire(product, ["stock"])

    async def _restock(self, db: AsyncSession, order: Order) -> None:
        for item in order.items:
            if item.product_id is None:
                continue
            await db.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .values(stock=Product.stock + item.quantity)
                .execution_options(synchronize_session=False)
            )

    async def _locked_order(self, db: AsyncSession, user: User, order_id: uuid.UUID) -> Order:
        order = await db.get(Order, order_id, with_for_update=True, populate_existing=True)
        if order is None or (order.user_id != user.id and not user.is_admin):
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    async def cancel_order(self, db: AsyncSession, user: User, order_id: uuid.UUID) -> Order:
        order = await self._locked_order(db, user, order_id)
        if order.status != OrderStatus.PENDING.value:
            raise ValidationError(
                message=f"Only pending orders can be cancelled (order is '{order.status}')",
                field="status",
            )
        await self._restock(db, order)
        order.status = OrderStatus.CANCELLED.value
        await db.flush()
        logger.info("Order %s cancelled by user %s", order.id, user.id)
        return order

    async def update_status(
        self, db: AsyncSession, admin: User, order_id: uuid.UUID, status: OrderStatus
    ) -> Order:
        order = await self._locked_order(db, admin, order_id)
        target = status.value
        if target not in STATUS_TRANSITIONS.get(order.status, set()):
            raise ValidationError(
                message=f"Cannot move order from '{order.status}' to '{target}'",
                field="status",
                context={"from": order.status, "to": target},
            )
        if target == OrderStatus.CANCELLED.value:
            await self._restock(db, order)
        order.status = target
        await db.flush()
        logger.info("Order %s moved to %s by admin %s", order.id, target, admin.id)
        return order


order_service = OrderService()
