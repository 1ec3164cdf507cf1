"""Tests for the price alert book."""

import pytest

from sourcing_assistant.notify.price_alerts import PriceAlertBook
from sourcing_assistant.proposal.models import Proposal


@pytest.fixture
def proposal():
    return Proposal.model_validate({
        "productName": "Widget",
        "ddpPriceTiers": [
            {"quantity": 1000, "pricePerUnit": 0.98},
            {"quantity": 5000, "pricePerUnit": 0.80},
        ],
    })


@pytest.fixture
def book(state_store):
    alerts = PriceAlertBook(state_store)
    alerts.load()
    return alerts


def test_threshold_reached(book, proposal):
    book.set_alert("Widget", 1000, 1.00)

    notifications = book.evaluate(proposal)

    assert len(notifications) == 1
    assert notifications[0].quantity == 1000
    assert notifications[0].message == (
        "Price for 1,000 units has hit your target of $1.00! Current price: $0.98."
    )


def test_threshold_not_reached(book, proposal):
    book.set_alert("Widget", 1000, 0.90)

    assert book.evaluate(proposal) == []


def test_equal_price_triggers(book, proposal):
    book.set_alert("Widget", 5000, "0.80")

    assert [n.quantity for n in book.evaluate(proposal)] == [5000]


def test_evaluate_is_idempotent(book, proposal):
    book.set_alert("Widget", 1000, 1.00)
    book.set_alert("Widget", 5000, 0.85)

    assert book.evaluate(proposal) == book.evaluate(proposal)


def test_other_products_are_ignored(book, proposal):
    book.set_alert("Gadget", 1000, 5.00)

    assert book.evaluate(proposal) == []


@pytest.mark.parametrize("price", [None, "", 0, -1, "abc"])
def test_unusable_price_removes_alert(book, price):
    book.set_alert("Widget", 1000, 1.00)

    book.set_alert("Widget", 1000, price)

    assert book.alerts_for("Widget") == {}


def test_removing_last_threshold_prunes_product(book):
    book.set_alert("Widget", 1000, 1.00)
    book.set_alert("Widget", 5000, 0.80)

    book.delete_alert("Widget", 1000)
    assert book.all_alerts() == {"Widget": {5000: 0.80}}

    book.delete_alert("Widget", 5000)
    assert book.all_alerts() == {}


def test_alerts_persist(state_store):
    first = PriceAlertBook(state_store)
    first.load()
    first.set_alert("Widget", 1000, 1.25)

    second = PriceAlertBook(state_store)
    second.load()

    assert second.alerts_for("Widget") == {1000: 1.25}
    assert state_store.read(second.key) == {"Widget": {"1000": 1.25}}


def test_corrupt_payload_loads_empty(state_store):
    book = PriceAlertBook(state_store)
    state_store._get_path(book.key).write_text("{not json", encoding="utf-8")

    book.load()

    assert book.all_alerts() == {}
    assert state_store.read(book.key) is None


def test_wrong_shape_loads_empty(state_store):
    book = PriceAlertBook(state_store)
    state_store.write(book.key, {"Widget": {"1000": "cheap"}})

    book.load()

    assert book.all_alerts() == {}


def test_undecodable_bytes_load_empty(state_store):
    book = PriceAlertBook(state_store)
    state_store._get_path(book.key).write_bytes(b'{"W\xff": {"1000": 1.0}}')

    book.load()

    assert book.all_alerts() == {}
    assert state_store.read(book.key) is None
