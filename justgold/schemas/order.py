# justgold/schemas/order.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

OrderStatus = Literal["pending", "confirmed", "shipped", "canceled"]


class OrderItemCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    variant_id: int
    quantity: int = Field(gt=0)


class OrderCreate(SQLModel):
    """
    Payload for placing an order.

    User provides:
      - items: variant ids and quantities

    Backend derives:
      - user_id from token
      - status = 'pending'
      - unit price of every line (variant price, else product base price)
      - total_amount
    """

    model_config = ConfigDict(extra="forbid")

    items: list[OrderItemCreate] = Field(min_length=1)


class OrderItemRead(SQLModel):
    id: int
    order_id: int
    product_variant_id: int
    quantity: int
    price: float
    line_total: float


class OrderRead(SQLModel):
    id: int
    user_id: int
    status: OrderStatus
    total_amount: float
    created_at: datetime
    items: list[OrderItemRead] = []
