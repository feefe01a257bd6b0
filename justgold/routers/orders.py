# justgold/routers/orders.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from justgold.core.auth import require_auth
from justgold.database import get_session
from justgold.models.user import User
from justgold.repositories.order_repo import OrderRepository
from justgold.repositories.product_repo import ProductRepository
from justgold.schemas.order import OrderCreate, OrderRead
from justgold.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
service = OrderService(order_repo, product_repo)


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Place an order for one or more variants.

    Prices are taken from the catalog at purchase time; the client only
    sends variant ids and quantities.
    """
    return service.place_order(session, current_user.id, payload)


@router.get("/me", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's orders with their items.
    """
    return service.list_user_orders(session, current_user.id, skip, limit)
