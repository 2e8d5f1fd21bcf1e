"""Unit tests for the device cart store and its storage backends."""

import json

import pytest
from storefront.cart import (
    CART_STORAGE_KEY,
    CartStore,
    OutOfStockError,
)
from storefront.storage import CartStorage, JsonFileStorage, MemoryStorage

LAVENDER = {"id": "p1", "name": "Lavender Dusk", "price": 420, "stock": 5}
AMBER = {"id": "p2", "name": "Amber Night", "price": 350, "stock": None}
SOLD_OUT = {"id": "p3", "name": "Fig Leaf", "price": 390, "stock": 0}


def _stored(storage) -> dict:
    return json.loads(storage.get(CART_STORAGE_KEY))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_add_item_merges_lines_for_same_product():
    cart = CartStore(MemoryStorage())

    cart.add_item(LAVENDER, 2)
    cart.add_item(LAVENDER, 3)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.total == 2100
    assert cart.item_count == 5


@pytest.mark.unit
def test_add_item_captures_name_and_price():
    cart = CartStore(MemoryStorage())
    cart.add_item(AMBER)

    line = cart.items[0]
    assert line.product_id == "p2"
    assert line.name == "Amber Night"
    assert line.price == 350
    assert line.quantity == 1


@pytest.mark.unit
def test_add_item_rejects_sold_out_product():
    storage = MemoryStorage()
    cart = CartStore(storage)

    with pytest.raises(OutOfStockError):
        cart.add_item(SOLD_OUT)

    assert cart.is_empty
    assert storage.get(CART_STORAGE_KEY) is None


@pytest.mark.unit
def test_add_item_rejects_non_positive_quantity():
    cart = CartStore(MemoryStorage())
    with pytest.raises(ValueError):
        cart.add_item(LAVENDER, 0)
    assert cart.is_empty


@pytest.mark.unit
def test_update_quantity_below_one_leaves_cart_unchanged():
    cart = CartStore(MemoryStorage())
    cart.add_item(LAVENDER, 2)

    with pytest.raises(ValueError):
        cart.update_quantity("p1", 0)

    assert cart.items[0].quantity == 2


@pytest.mark.unit
def test_update_quantity_overwrites_and_ignores_unknown_product():
    cart = CartStore(MemoryStorage())
    cart.add_item(LAVENDER, 2)

    cart.update_quantity("p1", 7)
    cart.update_quantity("missing", 3)

    assert [(line.product_id, line.quantity) for line in cart.items] == [("p1", 7)]


@pytest.mark.unit
def test_remove_and_clear():
    cart = CartStore(MemoryStorage())
    cart.add_item(LAVENDER)
    cart.add_item(AMBER)

    cart.remove_item("p1")
    cart.remove_item("not-in-cart")
    assert [line.product_id for line in cart.items] == ["p2"]

    cart.clear_cart()
    assert cart.is_empty
    assert cart.total == 0


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_every_mutation_is_persisted_with_version():
    storage = MemoryStorage()
    cart = CartStore(storage)

    cart.add_item(LAVENDER, 2)
    payload = _stored(storage)
    assert payload["version"] == 1
    assert payload["items"] == [
        {"productId": "p1", "name": "Lavender Dusk", "price": 420, "quantity": 2}
    ]

    cart.clear_cart()
    assert _stored(storage)["items"] == []


@pytest.mark.unit
def test_cart_reloads_from_storage():
    storage = MemoryStorage()
    first = CartStore(storage)
    first.add_item(LAVENDER, 2)
    first.add_item(AMBER)

    second = CartStore(storage)
    assert [(line.product_id, line.quantity) for line in second.items] == [
        ("p1", 2),
        ("p2", 1),
    ]
    assert second.total == 1190


@pytest.mark.unit
def test_legacy_list_payload_is_migrated():
    legacy = [{"productId": "p1", "name": "Lavender Dusk", "price": 420, "quantity": 1}]
    storage = MemoryStorage({CART_STORAGE_KEY: json.dumps(legacy)})

    cart = CartStore(storage)
    assert cart.item_count == 1

    cart.add_item(LAVENDER)
    assert _stored(storage)["version"] == 1
    assert _stored(storage)["items"][0]["quantity"] == 2


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps({"version": 99, "items": []}),
        json.dumps({"version": 1, "items": [{"name": "no id"}]}),
        json.dumps("a string"),
    ],
)
def test_unreadable_payload_starts_empty(raw):
    cart = CartStore(MemoryStorage({CART_STORAGE_KEY: raw}))
    assert cart.is_empty


@pytest.mark.unit
def test_json_file_storage_round_trip(tmp_path):
    storage = JsonFileStorage(str(tmp_path / "state"))
    assert storage.get(CART_STORAGE_KEY) is None

    cart = CartStore(storage)
    cart.add_item(AMBER, 4)

    assert (tmp_path / "state" / "cho_cart.json").exists()
    assert CartStore(JsonFileStorage(str(tmp_path / "state"))).item_count == 4

    storage.delete(CART_STORAGE_KEY)
    storage.delete(CART_STORAGE_KEY)
    assert storage.get(CART_STORAGE_KEY) is None


@pytest.mark.unit
def test_order_lines_use_api_field_names():
    cart = CartStore(MemoryStorage())
    cart.add_item(LAVENDER, 2)

    assert cart.order_lines() == [{"productId": "p1", "quantity": 2, "unitPrice": 420}]


@pytest.mark.unit
def test_incomplete_storage_backend_fails_at_construction():
    class ReadOnlyStorage(CartStorage):
        def get(self, key):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStorage()
