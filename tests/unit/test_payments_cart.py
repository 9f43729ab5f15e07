from decimal import Decimal

import pytest

from billetterie.errors import InvalidRequest
from billetterie.payments import cart
from billetterie.payments.cart import BasketLine

EVENT = {"id": 1, "name": "Festa Junina"}
TYPES = [
    {"id": 1, "name": "Padrão", "description": "Entrada padrão", "price": 50.0, "quantity": 10},
    {"id": 2, "name": "VIP", "description": "", "price": "120.50", "quantity": 3},
    {"id": 3, "name": "Cortesia", "description": None, "price": 0, "quantity": 100},
]


def test_parse_basket_accepts_camel_and_snake_case():
    lines = cart.parse_basket([
        {"ticketTypeId": 1, "quantity": 2},
        {"ticket_type_id": "2", "quantity": "1"},
    ])
    assert lines == [BasketLine(1, 2), BasketLine("2", 1)]


@pytest.mark.parametrize("items", [None, [], {}, "1x2"])
def test_parse_basket_empty_raises(items):
    with pytest.raises(InvalidRequest):
        cart.parse_basket(items)


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "abc", None])
def test_parse_basket_rejects_non_positive_integer_quantity(quantity):
    with pytest.raises(InvalidRequest) as exc:
        cart.parse_basket([{"ticketTypeId": 1, "quantity": 1}, {"ticketTypeId": 2, "quantity": quantity}])
    assert exc.value.details["line"] == 1


def test_parse_basket_merges_repeated_ticket_type():
    lines = cart.parse_basket([
        {"ticketTypeId": 1, "quantity": 6},
        {"ticketTypeId": 2, "quantity": 1},
        {"ticket_type_id": "1", "quantity": 6},
    ])
    assert lines == [BasketLine(1, 12), BasketLine(2, 1)]


def test_repeated_ticket_type_checked_against_stock_as_a_whole():
    # 6 + 6 dépasse le stock de 10 même si chaque ligne le respecte
    basket = cart.parse_basket([{"ticketTypeId": 1, "quantity": 6}, {"ticketTypeId": 1, "quantity": 6}])
    with pytest.raises(InvalidRequest) as exc:
        cart.price_basket(EVENT, TYPES, basket, "a@b.com")
    assert exc.value.details == {"ticket_type_id": 1, "requested": 12, "available": 10}


def test_repeated_ticket_type_within_stock_is_one_line():
    basket = cart.parse_basket([{"ticketTypeId": 1, "quantity": 3}, {"ticketTypeId": 1, "quantity": 2}])
    order = cart.price_basket(EVENT, TYPES, basket, "a@b.com")
    assert len(order.lines) == 1
    assert order.lines[0].quantity == 5
    assert order.total == Decimal("250.00")


def test_parse_basket_requires_ticket_type_id():
    with pytest.raises(InvalidRequest):
        cart.parse_basket([{"quantity": 1}])


def test_price_basket_total_is_sum_of_lines():
    order = cart.price_basket(EVENT, TYPES, [BasketLine(1, 2), BasketLine(2, 3)], "a@b.com")
    assert order.total == Decimal("461.50")
    assert [l.total_price for l in order.lines] == [Decimal("100.00"), Decimal("361.50")]
    assert order.lines[0].ticket_type_name == "Padrão"


def test_price_basket_oversell_names_requested_and_available():
    with pytest.raises(InvalidRequest) as exc:
        cart.price_basket(EVENT, TYPES, [BasketLine(1, 11)], "a@b.com")
    assert exc.value.details == {"ticket_type_id": 1, "requested": 11, "available": 10}
    assert "(11)" in exc.value.message and "(10)" in exc.value.message


def test_price_basket_quantity_equal_to_stock_is_accepted():
    order = cart.price_basket(EVENT, TYPES, [BasketLine(2, 3)], "a@b.com")
    assert order.total == Decimal("361.50")


def test_price_basket_unknown_ticket_type():
    with pytest.raises(InvalidRequest) as exc:
        cart.price_basket(EVENT, TYPES, [BasketLine(99, 1)], "a@b.com")
    assert exc.value.details["ticket_type_id"] == 99


def test_price_basket_first_violation_is_reported():
    # La ligne 1 dépasse le stock, la ligne 2 est inconnue: seule la première est rapportée
    with pytest.raises(InvalidRequest) as exc:
        cart.price_basket(EVENT, TYPES, [BasketLine(2, 4), BasketLine(99, 1)], "a@b.com")
    assert exc.value.details["requested"] == 4


def test_price_basket_zero_total_rejected():
    with pytest.raises(InvalidRequest) as exc:
        cart.price_basket(EVENT, TYPES, [BasketLine(3, 2)], "a@b.com")
    assert "zéro" in exc.value.message


def test_to_minor_units_rounds_half_up():
    assert cart.to_minor_units(Decimal("50.00")) == 5000
    assert cart.to_minor_units(Decimal("0.125")) == 13
    assert cart.to_minor_units(Decimal("19.994")) == 1999
    assert cart.to_money("10.005") == Decimal("10.01")


def test_to_line_items_one_price_line_per_basket_line():
    order = cart.price_basket(EVENT, TYPES, [BasketLine(1, 2), BasketLine(2, 1)], "a@b.com")
    items = cart.to_line_items(order, TYPES, "brl")
    assert len(items) == 2
    first = items[0]
    assert first["quantity"] == 2
    assert first["price_data"]["currency"] == "brl"
    assert first["price_data"]["unit_amount"] == 5000
    assert first["price_data"]["product_data"]["name"] == "Festa Junina - Padrão"
    assert first["price_data"]["product_data"]["description"] == "Entrada padrão"
    assert first["price_data"]["product_data"]["metadata"] == {
        "eventId": "1", "ticketTypeId": "1", "eventName": "Festa Junina",
    }
    # description vide non transmise à Stripe
    assert "description" not in items[1]["price_data"]["product_data"]
    assert items[1]["price_data"]["unit_amount"] == 12050


def test_require_email():
    assert cart.require_email(" teste@email.com ") == "teste@email.com"
    with pytest.raises(InvalidRequest):
        cart.require_email("")
    with pytest.raises(InvalidRequest):
        cart.require_email("pas-un-email")


def test_normalize_line_items_price_and_dynamic():
    items = cart.normalize_line_items(
        [{"price": "price_123"}, {"name": "Doação", "amount": 1500, "quantity": 2}],
        "brl",
    )
    assert items[0] == {"price": "price_123", "quantity": 1}
    assert items[1] == {
        "price_data": {"currency": "brl", "product_data": {"name": "Doação"}, "unit_amount": 1500},
        "quantity": 2,
    }


def test_normalize_line_items_empty_or_invalid():
    with pytest.raises(InvalidRequest):
        cart.normalize_line_items([], "brl")
    with pytest.raises(InvalidRequest):
        cart.normalize_line_items([{"name": "X", "amount": 0}], "brl")
