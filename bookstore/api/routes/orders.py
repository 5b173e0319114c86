"""
Order API Routes

Order placement for customers, order review and status changes for
administrators.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from loguru import logger

from bookstore.api.dependencies import (
    get_order_service,
    get_user_service,
    parse_json_body,
    require_admin,
    require_identity,
)
from bookstore.api.schemas import (
    ErrorResponse,
    OrderCreateRequest,
    OrderResponse,
    StatusUpdateRequest,
)
from bookstore.exceptions import (
    AuthorizationError,
    InvalidOrderStatusError,
    MalformedRequestError,
    UnknownUserError,
)
from bookstore.security import Identity
from bookstore.storage.models import OrderStatus


router = APIRouter(prefix="/orders", tags=["orders"])

AUTH_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Authentication required"},
}
ADMIN_RESPONSES = {
    **AUTH_RESPONSES,
    403: {"model": ErrorResponse, "description": "Admin access required"},
}


async def order_create_payload(
    request: Request,
    identity: Identity = Depends(require_identity),
) -> Optional[OrderCreateRequest]:
    """Order body, read only once the caller is authenticated."""
    return await parse_json_body(request, OrderCreateRequest)


async def status_update_payload(
    request: Request,
    identity: Identity = Depends(require_admin),
) -> Optional[StatusUpdateRequest]:
    """Status body, read only once the caller is known to be an admin."""
    return await parse_json_body(request, StatusUpdateRequest)


def _resolve_user(users, identity: Identity, failure_message: str):
    """Load the caller's user record; a missing record is a domain error."""
    logger.debug(f"Looking up user by username: {identity.username}")
    user = users.find_by_username(identity.username)
    if user is None:
        logger.error(f"User not found in database for username: {identity.username}")
        raise UnknownUserError(identity.username, message=failure_message)
    return user


@router.post(
    "",
    response_model=OrderResponse,
    responses={
        **AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Missing items or unknown user"},
        404: {"model": ErrorResponse, "description": "Unknown book"},
    },
)
def create_order(
    identity: Identity = Depends(require_identity),
    payload: Optional[OrderCreateRequest] = Depends(order_create_payload),
    users=Depends(get_user_service),
    orders=Depends(get_order_service),
):
    """Place an order for the authenticated caller."""
    logger.info("Order creation request received")

    if payload is None or not payload.items:
        logger.warning("Invalid order request - missing items")
        raise MalformedRequestError("Order request and items are required")

    user = _resolve_user(users, identity, "Failed to create order")

    logger.info(f"Creating order for user: {user.username} with {len(payload.items)} items")
    order = orders.create_order(user, payload.items, payload.shipping_address)

    logger.info(f"Order created successfully with ID: {order.id}")
    return order


@router.get("/user", response_model=list[OrderResponse], responses=AUTH_RESPONSES)
def get_user_orders(
    identity: Identity = Depends(require_identity),
    users=Depends(get_user_service),
    orders=Depends(get_order_service),
):
    """All orders of the authenticated caller, newest first."""
    user = _resolve_user(users, identity, "Failed to fetch orders")
    return orders.get_user_orders(user)


@router.get("/admin", response_model=list[OrderResponse], responses=ADMIN_RESPONSES)
def get_all_orders(
    identity: Identity = Depends(require_admin),
    orders=Depends(get_order_service),
):
    """Every order in the system (admin only)."""
    logger.debug(f"Admin {identity.username} listing all orders")
    return orders.get_all_orders()


@router.get("/{order_id}", response_model=OrderResponse, responses=ADMIN_RESPONSES)
def get_order(
    order_id: int,
    identity: Identity = Depends(require_identity),
    orders=Depends(get_order_service),
):
    """A single order; visible to its owner and to admins."""
    order = orders.get_order(order_id)
    if not identity.is_admin and order.username != identity.username:
        raise AuthorizationError("Not allowed to view this order")
    return order


@router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    responses={
        **ADMIN_RESPONSES,
        400: {"model": ErrorResponse, "description": "Missing or invalid status"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
def update_order_status(
    order_id: int,
    identity: Identity = Depends(require_admin),
    payload: Optional[StatusUpdateRequest] = Depends(status_update_payload),
    orders=Depends(get_order_service),
):
    """Move an order to a new status (admin only, name is case-insensitive)."""
    status_name = payload.status if payload is not None else None
    if not status_name:
        raise MalformedRequestError("Status is required")

    try:
        new_status = OrderStatus.parse(status_name)
    except ValueError:
        logger.error(f"Invalid order status: {status_name}")
        raise InvalidOrderStatusError(status_name) from None

    order = orders.update_order_status(order_id, new_status)

    logger.info(f"Order {order_id} status updated to {new_status.value} by admin: {identity.username}")
    return order


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ADMIN_RESPONSES,
)
def delete_order(
    order_id: int,
    identity: Identity = Depends(require_admin),
    orders=Depends(get_order_service),
):
    """Delete an order together with its items (admin only)."""
    orders.delete_order(order_id)
    logger.info(f"Order {order_id} deleted by admin: {identity.username}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
