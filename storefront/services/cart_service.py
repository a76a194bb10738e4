# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple
import logging

from sqlmodel import Session

from storefront.models.product import Product
from storefront.schemas.cart_schemas import CartItemInput, CartLine
from storefront.services.exceptions import CartError
from storefront.services.pricing_service import calculate_subtotal

logger = logging.getLogger(__name__)


def cart_line_for(product: Product, quantity: int) -> CartLine:
    # a sale price that is not below the list price is ignored
    sale_price = product.sale_price
    if sale_price is not None and sale_price >= product.price:
        sale_price = None

    return CartLine(
        product_id=product.id,
        unit_price=product.price,
        sale_price=sale_price,
        quantity=quantity,
    )


class Cart:
    """
    Shopper's cart.

    Holds products and quantities and hands validated CartLines to the
    price calculator. Quantities never exceed the stock seen when the
    product was added or updated.
    """

    def __init__(self):
        self._items: Dict[int, Tuple[Product, int]] = {}

    def add(self, product: Product, quantity: int = 1) -> int:
        if quantity < 1:
            raise CartError("Quantity must be at least 1")
        if product.stock < 1:
            raise CartError(f"{product.name} is out of stock")

        current = self._items.get(product.id, (product, 0))[1]
        new_quantity = min(current + quantity, product.stock)
        self._items[product.id] = (product, new_quantity)

        logger.debug(f"Cart: product {product.id} quantity {current} -> {new_quantity}")
        return new_quantity

    def update_quantity(self, product_id: int, quantity: int) -> int:
        if product_id not in self._items:
            raise CartError(f"Product {product_id} is not in the cart")

        if quantity <= 0:
            self.remove(product_id)
            return 0

        product, _ = self._items[product_id]
        new_quantity = min(quantity, product.stock)
        self._items[product_id] = (product, new_quantity)
        return new_quantity

    def remove(self, product_id: int) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self):
        return len(self._items)

    def quantity_of(self, product_id: int) -> int:
        return self._items.get(product_id, (None, 0))[1]

    @property
    def item_count(self) -> int:
        return sum(qty for _, qty in self._items.values())

    def products(self) -> List[Product]:
        return [product for product, _ in self._items.values()]

    def lines(self) -> List[CartLine]:
        return [cart_line_for(product, qty) for product, qty in self._items.values()]

    @property
    def subtotal(self) -> Decimal:
        return calculate_subtotal(self.lines())


def load_cart(session: Session, items: Iterable[CartItemInput], strict: bool = False) -> Cart:
    """
    Build a Cart from requested items, reading price and stock from the
    product table.

    Quotes (``strict=False``) clamp to stock like adding to the cart does.
    Checkout (``strict=True``) refuses anything that cannot be fulfilled.
    """
    cart = Cart()

    for item in items:
        product = session.get(Product, item.product_id)

        if not product or not product.is_visible:
            raise CartError(f"Product {item.product_id} not found")

        if strict:
            wanted = cart.quantity_of(product.id) + item.quantity
            if product.stock < wanted:
                raise CartError(f"{product.name} has only {product.stock} left")

        cart.add(product, item.quantity)

    return cart
