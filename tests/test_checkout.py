import asyncio

import pytest

from schemas import OrderStatus, ShippingInfo, User
from storefront.auth import AuthStore
from storefront.cart import CartStore
from storefront.checkout import EmptyCartError, NotAuthenticatedError, shipping_from_user, submit_order
from storefront.orders import OrderStore


@pytest.fixture
def stores(storage):
    return CartStore(storage), AuthStore(storage, latency=0), OrderStore(storage, latency=0)


def test_checkout_creates_order_and_clears_cart(stores, headphones, mouse):
    cart, auth, orders = stores
    user = asyncio.run(auth.login("jane@example.com", "pw"))
    cart.add_to_cart(headphones)
    cart.add_to_cart(mouse, 2)
    expected_total = cart.get_total()

    order = asyncio.run(submit_order(cart, auth, orders))

    assert order.user_id == user.id
    assert order.status is OrderStatus.PENDING
    assert order.total == pytest.approx(expected_total)
    assert [(i.product.id, i.quantity, i.price) for i in order.items] == [
        (headphones.id, 1, headphones.price),
        (mouse.id, 2, mouse.price),
    ]
    assert order.shipping_address.city == "Montreal"
    assert cart.items == []
    assert orders.get_orders_by_user_id(user.id) == [order]


def test_checkout_uses_given_shipping(stores, mouse):
    cart, auth, orders = stores
    asyncio.run(auth.login("jane@example.com", "pw"))
    cart.add_to_cart(mouse)
    shipping = ShippingInfo(full_name="Jane", address="1 Rue", city="Paris", country="France")
    order = asyncio.run(submit_order(cart, auth, orders, shipping))
    assert order.shipping_address == shipping


def test_checkout_requires_login(stores, mouse):
    cart, auth, orders = stores
    cart.add_to_cart(mouse)
    with pytest.raises(NotAuthenticatedError):
        asyncio.run(submit_order(cart, auth, orders))
    assert cart.get_item_count() == 1


def test_checkout_requires_items(stores):
    cart, auth, orders = stores
    asyncio.run(auth.login("jane@example.com", "pw"))
    with pytest.raises(EmptyCartError):
        asyncio.run(submit_order(cart, auth, orders))
    assert orders.orders == []


def test_shipping_prefill_without_address():
    info = shipping_from_user(User(id=3, name="Ann", email="ann@example.com"))
    assert info == ShippingInfo()
    assert shipping_from_user(None) == ShippingInfo()
