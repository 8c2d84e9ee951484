"""Order API routes."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.deps import AdminUser, CurrentUser, OptionalUser, OrderServiceDep
from src.api.middleware.error_handler import NotFoundError
from src.models.checkout import BuyerInfo
from src.schemas.order import (
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
)
from src.services.order_service import can_access_order

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="Places a pending order priced from the catalog, without a hosted checkout.",
)
async def create_order(
    data: OrderCreateRequest,
    service: OrderServiceDep,
    user: OptionalUser,
) -> OrderResponse:
    """Place an order directly.

    Prices come from the catalog; the request only names items and quantities.
    """
    order = await service.create_order(
        cart_lines=[line.to_cart_line() for line in data.items],
        buyer=BuyerInfo(
            name=data.name.strip(),
            email=str(data.email),
            phone=(data.phone or "").strip() or None,
            address=data.address.strip(),
        ),
        currency=data.currency,
        user_id=user.user_id if user else None,
    )
    return OrderResponse(**order)


@router.get("", response_model=OrderListResponse, summary="List orders")
async def list_orders(
    service: OrderServiceDep,
    user: CurrentUser,
    status_filter: Annotated[OrderStatus | None, Query(alias="status", description="Filter by status")] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    page_size: Annotated[int, Query(description="Results per page, max 100")] = 20,
) -> OrderListResponse:
    """List orders.

    Admins see every order; other users see their own. Both are paginated.
    """
    result = await service.list_orders_for(user, status=status_filter, page=page, page_size=page_size)
    return OrderListResponse(
        items=[OrderResponse(**o) for o in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        pages=result["pages"],
    )


@router.get("/{order_id}", response_model=OrderResponse, summary="Get an order")
async def get_order(order_id: str, service: OrderServiceDep, user: CurrentUser) -> OrderResponse:
    """Get a single order. Owners and admins only.

    Orders the caller may not see are reported as not found.
    """
    order = await service.get_order(order_id)
    if not can_access_order(order, user):
        raise NotFoundError(f"Order {order_id} not found")
    return OrderResponse(**order)


@router.patch("/{order_id}/status", response_model=OrderResponse, summary="Change order status")
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    service: OrderServiceDep,
    admin: AdminUser,
) -> OrderResponse:
    """Move an order along its status state machine. Admin only."""
    order = await service.transition_status(order_id, data.status)
    return OrderResponse(**order)
