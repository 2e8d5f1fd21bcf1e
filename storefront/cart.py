"""Shopping cart kept on the customer's device.

The cart is a list of lines, one per product, persisted as JSON after every
change. Prices are captured when a product is added and are only a display
hint: the server reprices every order from the catalog.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any, Optional

from libs.common.logging import get_logger
from storefront.storage import CartStorage, JsonFileStorage

logger = get_logger(__name__)

CART_STORAGE_KEY = "cho_cart"
CART_FORMAT_VERSION = 1


class OutOfStockError(Exception):
    """Raised when adding a product whose stock is zero."""

    def __init__(self, product_id: str, name: Optional[str] = None):
        self.product_id = product_id
        super().__init__(f"{name or product_id} is out of stock")


@dataclass
class CartLine:
    product_id: str
    name: str
    price: int
    quantity: int

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_payload(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_payload(cls, data: dict) -> "CartLine":
        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError(f"Stored quantity {quantity} is not positive")
        return cls(
            product_id=str(data["productId"]),
            name=str(data.get("name", "")),
            price=int(data.get("price", 0)),
            quantity=quantity,
        )


def _product_field(product: Any, name: str) -> Any:
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


class CartStore:
    """Cart state backed by a ``CartStorage``.

    Every mutation rewrites the whole cart under ``cho_cart``.
    """

    def __init__(self, storage: Optional[CartStorage] = None):
        self.storage = storage if storage is not None else JsonFileStorage()
        self._lines: list[CartLine] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[CartLine]:
        raw = self.storage.get(CART_STORAGE_KEY)
        if not raw:
            return []

        try:
            data = json.loads(raw)
            if isinstance(data, list):
                # Unversioned payload from before the envelope existed
                items = data
            elif isinstance(data, dict):
                version = data.get("version")
                if version != CART_FORMAT_VERSION:
                    logger.warning(f"Ignoring stored cart with version {version}")
                    return []
                items = data.get("items") or []
            else:
                raise ValueError("Unexpected cart payload")
            return self._merge([CartLine.from_payload(item) for item in items])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable stored cart: {e}")
            return []

    @staticmethod
    def _merge(lines: list[CartLine]) -> list[CartLine]:
        merged: dict[str, CartLine] = {}
        for line in lines:
            if line.product_id in merged:
                merged[line.product_id].quantity += line.quantity
            else:
                merged[line.product_id] = line
        return list(merged.values())

    def _save(self) -> None:
        payload = {
            "version": CART_FORMAT_VERSION,
            "items": [line.to_payload() for line in self._lines],
        }
        self.storage.set(CART_STORAGE_KEY, json.dumps(payload))

    def _find(self, product_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, product: Any, quantity: int = 1) -> CartLine:
        """Add ``quantity`` of ``product``, merging with an existing line."""
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        product_id = str(_product_field(product, "id"))
        name = _product_field(product, "name") or ""
        if _product_field(product, "stock") == 0:
            raise OutOfStockError(product_id, name)

        line = self._find(product_id)
        if line:
            line.quantity += quantity
        else:
            line = CartLine(
                product_id=product_id,
                name=name,
                price=int(_product_field(product, "price") or 0),
                quantity=quantity,
            )
            self._lines.append(line)
        self._save()
        return line

    def remove_item(self, product_id: str) -> None:
        product_id = str(product_id)
        remaining = [line for line in self._lines if line.product_id != product_id]
        if len(remaining) != len(self._lines):
            self._lines = remaining
            self._save()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity. Use ``remove_item`` to drop a line."""
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        line = self._find(str(product_id))
        if line is None:
            return
        line.quantity = quantity
        self._save()

    def clear_cart(self) -> None:
        self._lines = []
        self._save()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CartLine]:
        return [CartLine(**asdict(line)) for line in self._lines]

    @property
    def total(self) -> int:
        return sum(line.line_total for line in self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def order_lines(self) -> list[dict]:
        """Lines in the shape the order endpoints accept."""
        return [
            {
                "productId": line.product_id,
                "quantity": line.quantity,
                "unitPrice": line.price,
            }
            for line in self._lines
        ]
