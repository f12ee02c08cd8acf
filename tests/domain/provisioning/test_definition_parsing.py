from __future__ import annotations

import pytest

from provisioner.domain.errors import ConfigParseError, LegacyConfigError, StructuredConfigError
from provisioner.domain.provisioning.model import DesiredPrice, Interval
from provisioner.domain.provisioning.parsing import (
    LegacyDocument,
    StructuredDocument,
    classify_definitions,
    parse_product_definitions,
)


def test_blank_input_yields_empty_catalog() -> None:
    assert parse_product_definitions(None) == []
    assert parse_product_definitions("   ") == []


def test_legacy_grammar_parses_products_in_order() -> None:
    products = parse_product_definitions("Founders:2500,usd,month;Scale:4900,usd,month")

    assert [product.name for product in products] == ["Founders", "Scale"]
    assert products[0].prices == (
        DesiredPrice(amount=2500, currency="usd", interval=Interval.MONTH),
    )
    assert products[1].prices[0].amount == 4900


def test_legacy_grammar_without_interval_is_one_time() -> None:
    (product,) = parse_product_definitions("Lifetime:9900,EUR")

    (price,) = product.prices
    assert price.interval is None
    assert price.interval_count == 1
    assert price.currency == "eur"


def test_legacy_grammar_ignores_empty_entries_and_whitespace() -> None:
    products = parse_product_definitions(" Pro : 1000 , usd , Year ;; ")

    assert len(products) == 1
    assert products[0].name == "Pro"
    assert products[0].prices[0].interval is Interval.YEAR


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("Pro", 'Invalid product entry: "Pro"'),
        (
            "Pro:1000",
            'Invalid price format for "Pro": expected "amount,currency[,interval]"',
        ),
        (
            "BadProduct:,usd,month",
            'Invalid price format for "BadProduct": expected "amount,currency[,interval]"',
        ),
        (
            "BadProduct:notanumber,usd,month",
            'Invalid amount for "BadProduct": "notanumber" is not a number',
        ),
        (
            "BadProduct:1000,usd,quarterly",
            'Invalid interval for "BadProduct": "quarterly" (must be day, week, month, or year)',
        ),
        ("Pro:abc,usd", 'Invalid amount for "Pro": "abc" is not a number'),
        ("Pro:-5,usd", 'Invalid amount for "Pro": "-5" must not be negative'),
        (
            "Pro:1000,usd,fortnight",
            'Invalid interval for "Pro": "fortnight" (must be day, week, month, or year)',
        ),
    ],
)
def test_legacy_grammar_errors(raw: str, message: str) -> None:
    with pytest.raises(LegacyConfigError) as exc:
        parse_product_definitions(raw)

    assert str(exc.value) == message
    assert exc.value.field == "STRIPE_PRODUCTS"


def test_structured_grammar_supports_metadata_and_interval_count() -> None:
    raw = """
    [
      {
        "name": "Team",
        "description": "For small teams",
        "metadata": {"tier": "team"},
        "prices": [
          {"amount": 9000, "currency": "USD", "interval": "month", "intervalCount": 3},
          {"amount": 30000, "currency": "usd", "interval": "year", "metadata": {"plan": "annual"}}
        ]
      }
    ]
    """

    (product,) = parse_product_definitions(raw, field="STRIPE_PRODUCT_DEFINITIONS")

    assert product.description == "For small teams"
    assert product.metadata == {"tier": "team"}
    quarterly, annual = product.prices
    assert quarterly.identity == (9000, "usd", Interval.MONTH, 3)
    assert annual.metadata == {"plan": "annual"}


def test_structured_one_time_price_forces_interval_count_to_one() -> None:
    raw = (
        '[{"name": "Lifetime", '
        '"prices": [{"amount": 1, "currency": "usd", "interval_count": 6}]}]'
    )

    (product,) = parse_product_definitions(raw)

    assert product.prices[0].interval_count == 1


def test_structured_validation_error_names_field_and_location() -> None:
    raw = '[{"name": "Pro", "prices": [{"amount": -1, "currency": "usd"}]}]'

    with pytest.raises(StructuredConfigError) as exc:
        parse_product_definitions(raw, field="STRIPE_PRODUCT_DEFINITIONS")

    assert exc.value.field == "STRIPE_PRODUCT_DEFINITIONS"
    assert "STRIPE_PRODUCT_DEFINITIONS[0].prices[0].amount" in str(exc.value)


def test_malformed_json_is_not_retried_as_legacy() -> None:
    with pytest.raises(StructuredConfigError) as exc:
        parse_product_definitions('[{"name": "Pro",')

    assert "Failed to parse STRIPE_PRODUCTS as JSON" in str(exc.value)


@pytest.mark.parametrize("raw", ['{"name": "Pro"}', "42", '["Pro"]'])
def test_json_that_is_not_an_array_of_objects_is_rejected(raw: str) -> None:
    with pytest.raises(StructuredConfigError, match="must be a JSON array of product objects"):
        parse_product_definitions(raw)


def test_duplicate_product_names_are_rejected() -> None:
    with pytest.raises(ConfigParseError, match='Duplicate product "Pro"'):
        parse_product_definitions("Pro:1000,usd,month;Pro:2000,usd,month")


def test_duplicate_prices_are_rejected() -> None:
    raw = (
        '[{"name": "Pro", "prices": ['
        '{"amount": 1000, "currency": "usd", "interval": "month"},'
        '{"amount": 1000, "currency": "USD", "interval": "Month"}]}]'
    )

    with pytest.raises(StructuredConfigError, match="Duplicate price"):
        parse_product_definitions(raw)


def test_classify_definitions_dispatches_on_json_validity() -> None:
    assert isinstance(classify_definitions("[]"), StructuredDocument)
    assert isinstance(classify_definitions("Pro:1000,usd"), LegacyDocument)


def test_legacy_round_trip_through_serialised_form() -> None:
    raw = "Founders:2500,usd,month;Lifetime:9900,usd"
    products = parse_product_definitions(raw)

    serialised = ";".join(
        f"{product.name}:{price.amount},{price.currency}"
        + (f",{price.interval}" if price.interval is not None else "")
        for product in products
        for price in product.prices
    )

    assert serialised == raw
    assert parse_product_definitions(serialised) == products
