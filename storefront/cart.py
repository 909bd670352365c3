from typing import List

from schemas import CartItem, Product
from storefront.storage import Storage, dump_models, load_model_list
from storefront.subject import Subject

CART_KEY = "cart"


class CartStore:
    """Shopping cart held in memory and mirrored to storage.

    Entries are unique by product id. Every mutation rewrites the whole
    persisted cart and emits a fresh snapshot on items_stream.
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self._items: List[CartItem] = load_model_list(storage, CART_KEY, CartItem)
        self.items_stream: Subject[List[CartItem]] = Subject(self._snapshot())

    @property
    def items(self) -> List[CartItem]:
        return self._snapshot()

    def _snapshot(self) -> List[CartItem]:
        return [item.model_copy(deep=True) for item in self._items]

    def _save(self) -> None:
        self.storage.set(CART_KEY, dump_models(self._items))
        self.items_stream.next(self._snapshot())

    def _find(self, product_id: int):
        for item in self._items:
            if item.product.id == product_id:
                return item
        return None

    def add_to_cart(self, product: Product, quantity: int = 1) -> None:
        if quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {quantity}")
        existing = self._find(product.id)
        if existing:
            existing.quantity += quantity
        else:
            self._items.append(CartItem(product=product, quantity=quantity))
        self._save()

    def remove_from_cart(self, product_id: int) -> None:
        self._items = [it for it in self._items if it.product.id != product_id]
        self._save()

    def update_quantity(self, product_id: int, quantity: int) -> None:
        item = self._find(product_id)
        if not item:
            return
        if quantity <= 0:
            self.remove_from_cart(product_id)
            return
        item.quantity = quantity
        self._save()

    def clear_cart(self) -> None:
        self._items = []
        self.storage.remove(CART_KEY)
        self.items_stream.next([])

    def get_total(self) -> float:
        return sum(item.product.price * item.quantity for item in self._items)

    def get_item_count(self) -> int:
        return sum(item.quantity for item in self._items)
