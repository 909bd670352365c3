from typing import List, Optional

from schemas import Product

# Default catalog
SAMPLE_PRODUCTS = [
    {
        "id": 1,
        "name": "Premium Headphones",
        "description": "High-quality wireless headphones with noise cancellation",
        "price": 299.99,
        "image_url": "assets/images/headphones.svg",
        "category": "Electronics",
        "stock": 50,
        "rating": 4.5,
    },
    {
        "id": 2,
        "name": "Smart Watch",
        "description": "Fitness tracking smartwatch with heart rate monitor",
        "price": 199.99,
        "image_url": "assets/images/smartwatch.svg",
        "category": "Electronics",
        "stock": 30,
        "rating": 4.3,
    },
    {
        "id": 3,
        "name": "Laptop Bag",
        "description": "Durable laptop bag with multiple compartments",
        "price": 49.99,
        "image_url": "assets/images/bag.svg",
        "category": "Accessories",
        "stock": 100,
        "rating": 4.7,
    },
    {
        "id": 4,
        "name": "Wireless Mouse",
        "description": "Ergonomic wireless mouse with precision tracking",
        "price": 29.99,
        "image_url": "assets/images/mouse.svg",
        "category": "Accessories",
        "stock": 75,
        "rating": 4.4,
    },
]


class ProductCatalog:
    """Read-only, in-memory product list."""

    def __init__(self, products: Optional[List[Product]] = None):
        if products is None:
            products = [Product(**p) for p in SAMPLE_PRODUCTS]
        self._products = list(products)

    def get_products(self) -> List[Product]:
        return list(self._products)

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def get_products_by_category(self, category: str) -> List[Product]:
        return [p for p in self._products if p.category == category]

    def search_products(self, query: str) -> List[Product]:
        q_lower = query.lower()
        return [
            p for p in self._products
            if q_lower in p.name.lower() or q_lower in p.description.lower()
        ]

    def get_categories(self) -> List[str]:
        seen = []
        for p in self._products:
            if p.category not in seen:
                seen.append(p.category)
        return seen
