import pytest

from schemas import Product
from storefront.cart import CART_KEY, CartStore
from storefront.storage import FileStorage, MemoryStorage


def test_adding_same_product_twice_merges_quantities(storage, headphones):
    cart = CartStore(storage)
    cart.add_to_cart(headphones, 2)
    cart.add_to_cart(headphones, 3)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5


def test_add_defaults_to_one(storage, mouse):
    cart = CartStore(storage)
    cart.add_to_cart(mouse)
    assert cart.get_item_count() == 1


def test_total_tracks_add_update_remove(storage, headphones, mouse):
    cart = CartStore(storage)
    cart.add_to_cart(headphones, 1)
    cart.add_to_cart(mouse, 3)
    assert cart.get_total() == pytest.approx(299.99 + 3 * 29.99)
    cart.update_quantity(mouse.id, 1)
    assert cart.get_total() == pytest.approx(299.99 + 29.99)
    cart.remove_from_cart(headphones.id)
    assert cart.get_total() == pytest.approx(29.99)


def test_remove_excludes_product_from_count(storage, headphones, mouse):
    cart = CartStore(storage)
    cart.add_to_cart(headphones, 2)
    cart.add_to_cart(mouse, 4)
    cart.remove_from_cart(headphones.id)
    assert cart.get_item_count() == 4
    assert [it.product.id for it in cart.items] == [mouse.id]


def test_update_to_zero_is_remove(storage, headphones, mouse):
    a = CartStore(storage)
    a.add_to_cart(headphones, 2)
    a.add_to_cart(mouse, 1)
    a.update_quantity(headphones.id, 0)

    b = CartStore(MemoryStorage())
    b.add_to_cart(headphones, 2)
    b.add_to_cart(mouse, 1)
    b.remove_from_cart(headphones.id)

    assert a.items == b.items


def test_update_unknown_product_is_noop(storage, headphones):
    cart = CartStore(storage)
    cart.add_to_cart(headphones)
    seen = []
    cart.items_stream.subscribe(seen.append)
    cart.update_quantity(999, 5)
    assert len(seen) == 1
    assert cart.get_item_count() == 1


def test_clear_cart_removes_persisted_record(storage, headphones):
    cart = CartStore(storage)
    cart.add_to_cart(headphones)
    assert CART_KEY in storage.keys()
    cart.clear_cart()
    assert cart.items == []
    assert CART_KEY not in storage.keys()


def test_every_mutation_is_emitted_in_order(storage, headphones, mouse):
    cart = CartStore(storage)
    counts = []
    cart.items_stream.subscribe(lambda items: counts.append(sum(i.quantity for i in items)))
    cart.add_to_cart(headphones)
    cart.add_to_cart(mouse, 2)
    cart.update_quantity(mouse.id, 5)
    cart.clear_cart()
    assert counts == [0, 1, 3, 6, 0]


def test_emitted_snapshots_are_isolated(storage, headphones):
    cart = CartStore(storage)
    snapshots = []
    cart.items_stream.subscribe(snapshots.append)
    cart.add_to_cart(headphones)
    snapshots[-1][0].quantity = 42
    snapshots[-1].clear()
    assert cart.get_item_count() == 1


def test_cart_round_trips_through_file_storage(tmp_path, headphones, mouse):
    path = tmp_path / "state.json"
    cart = CartStore(FileStorage(path))
    cart.add_to_cart(mouse, 2)
    cart.add_to_cart(headphones, 1)
    reloaded = CartStore(FileStorage(path))
    assert reloaded.items == cart.items
    assert [it.product.id for it in reloaded.items] == [mouse.id, headphones.id]


def test_corrupt_persisted_cart_loads_empty(storage):
    storage.set_raw(CART_KEY, "{not json")
    cart = CartStore(storage)
    assert cart.items == []
    assert cart.get_total() == 0


def test_persisted_cart_with_wrong_shape_loads_empty(storage):
    storage.set(CART_KEY, [{"product": {"id": "x"}, "quantity": -1}])
    assert CartStore(storage).items == []


@pytest.mark.parametrize("bad", [0, -5])
def test_invalid_add_leaves_cart_and_storage_unchanged(storage, headphones, mouse, bad):
    cart = CartStore(storage)
    cart.add_to_cart(mouse, 3)
    cart.add_to_cart(headphones, 2)
    persisted = storage.get(CART_KEY)

    with pytest.raises(ValueError):
        cart.add_to_cart(headphones, bad)
    with pytest.raises(ValueError):
        cart.add_to_cart(Product(id=9, name="Cable", price=5, category="Accessories"), bad)

    assert [(it.product.id, it.quantity) for it in cart.items] == [(mouse.id, 3), (headphones.id, 2)]
    assert storage.get(CART_KEY) == persisted
    assert CartStore(storage).get_item_count() == 5


def test_negative_update_removes_entry(storage, headphones, mouse):
    cart = CartStore(storage)
    cart.add_to_cart(mouse, 3)
    cart.add_to_cart(headphones, 2)
    cart.update_quantity(headphones.id, -4)
    assert [it.product.id for it in cart.items] == [mouse.id]
    assert CartStore(storage).get_item_count() == 3
