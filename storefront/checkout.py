from typing import Optional

from schemas import Order, OrderCreate, OrderItem, OrderStatus, ShippingInfo, User
from storefront.auth import AuthStore
from storefront.cart import CartStore
from storefront.orders import OrderStore


class NotAuthenticatedError(Exception):
    pass


class EmptyCartError(Exception):
    pass


def shipping_from_user(user: Optional[User]) -> ShippingInfo:
    if not user or not user.address:
        return ShippingInfo()
    return ShippingInfo(
        full_name=user.name,
        address=user.address.street,
        city=user.address.city,
        state=user.address.state,
        zip_code=user.address.zip_code,
        country=user.address.country,
        phone=user.phone or "",
    )


async def submit_order(cart: CartStore, auth: AuthStore, orders: OrderStore,
                       shipping: Optional[ShippingInfo] = None) -> Order:
    """Turn the current cart into a pending order for the logged-in user, then empty the cart."""
    user = auth.get_current_user()
    if not user:
        raise NotAuthenticatedError("Please login to complete your order")
    items = cart.items
    if not items:
        raise EmptyCartError("Cart is empty")

    order = OrderCreate(
        user_id=user.id,
        items=[OrderItem(product=it.product, quantity=it.quantity, price=it.product.price) for it in items],
        total=cart.get_total(),
        status=OrderStatus.PENDING,
        shipping_address=shipping if shipping is not None else shipping_from_user(user),
    )
    created = await orders.create_order(order)
    cart.clear_cart()
    return created
