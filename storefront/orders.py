import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from schemas import Order, OrderCreate, OrderStatus
from storefront.ids import next_time_id
from storefront.storage import Storage, dump_models, load_model_list

logger = logging.getLogger(__name__)

ORDERS_KEY = "orders"


class OrderStore:
    def __init__(self, storage: Storage, latency: float = 0.5):
        self.storage = storage
        self.latency = latency
        self.orders: List[Order] = load_model_list(storage, ORDERS_KEY, Order)

    def _save(self) -> None:
        self.storage.set(ORDERS_KEY, dump_models(self.orders))

    async def create_order(self, order: OrderCreate) -> Order:
        new_order = Order(
            **order.model_dump(),
            id=next_time_id(),
            created_at=datetime.now(timezone.utc),
        )
        self.orders.append(new_order)
        self._save()
        logger.info("Created order %s for user %s (total %.2f)", new_order.id, new_order.user_id, new_order.total)
        await asyncio.sleep(self.latency)
        return new_order

    def get_orders_by_user_id(self, user_id: int) -> List[Order]:
        self.orders = load_model_list(self.storage, ORDERS_KEY, Order)
        return [o for o in self.orders if o.user_id == user_id]

    def get_order_by_id(self, order_id: int) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def update_order_status(self, order_id: int, status: OrderStatus) -> Optional[Order]:
        order = self.get_order_by_id(order_id)
        if order:
            order.status = OrderStatus(status)
            self._save()
        return order
