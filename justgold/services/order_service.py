# justgold/services/order_service.py
import logging

from fastapi import HTTPException, status
from sqlmodel import Session

from justgold.models.order import Order, OrderItem
from justgold.repositories.order_repo import OrderRepository
from justgold.repositories.product_repo import ProductRepository
from justgold.schemas.order import OrderCreate, OrderItemRead, OrderRead

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Resolve each line's price at purchase (variant price, else base price)
      - Compute total_amount
      - Insert Order + OrderItems and decrement variant stock in one transaction
    """

    def __init__(self, order_repo: OrderRepository, product_repo: ProductRepository):
        self.order_repo = order_repo
        self.product_repo = product_repo

    def place_order(
        self,
        session: Session,
        user_id: int,
        payload: OrderCreate,
    ) -> OrderRead:
        """
        Steps:
          1. Load every variant (404 if one is missing) and price the line.
          2. Create Order row (status='pending').
          3. Create OrderItem rows.
          4. Decrement each variant's stock with an atomic UPDATE.
          5. Commit; any error before this rolls everything back.

        Stock has no floor: an order may take it below zero. That is logged,
        not rejected.
        """
        try:
            priced: list[tuple[int, int, float]] = []
            for line in payload.items:
                variant = self.product_repo.get_variant(session, line.variant_id)
                if variant is None:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail=f"Variant {line.variant_id} not found",
                    )
                price = variant.price
                if price is None:
                    product = self.product_repo.get_by_id(session, variant.product_id)
                    price = product.base_price
                priced.append((variant.id, line.quantity, price))

            total_amount = round(sum(qty * price for _, qty, price in priced), 2)

            order = self.order_repo.create_order(
                session,
                Order(user_id=user_id, status="pending", total_amount=total_amount),
            )

            items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_variant_id=variant_id,
                        quantity=qty,
                        price=price,
                    )
                    for variant_id, qty, price in priced
                ],
            )

            for variant_id, qty, _ in priced:
                remaining = self.order_repo.decrement_stock(session, variant_id, qty)
                if remaining is not None and remaining < 0:
                    logger.warning(
                        "Variant %s oversold: stock is now %s (order %s)",
                        variant_id,
                        remaining,
                        order.id,
                    )

            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        logger.info("Order %s placed by user %s (%s)", order.id, user_id, total_amount)
        return self._build_order_dto(order, items)

    def list_user_orders(
        self,
        session: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        """
        List orders for the given user, with items.
        """
        orders = self.order_repo.list_for_user(session, user_id, skip, limit)
        return [
            self._build_order_dto(order, self.order_repo.list_items_for_order(session, order.id))
            for order in orders
        ]

    # -------- Helper DTO builder --------

    def _build_order_dto(self, order: Order, items: list[OrderItem]) -> OrderRead:
        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            status=order.status,
            total_amount=order.total_amount,
            created_at=order.created_at,
            items=[
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_variant_id=it.product_variant_id,
                    quantity=it.quantity,
                    price=it.price,
                    line_total=round(it.quantity * it.price, 2),
                )
                for it in items
            ],
        )
