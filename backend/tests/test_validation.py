"""
Payload validation and coercion tests.
"""

from decimal import Decimal

import pytest

from stockroom.models import Product, StockMovement
from stockroom.routes.products import PRODUCT_POLICY
from stockroom.routes.stock_movements import MOVEMENT_POLICY
from stockroom.validation import (
    MAX_QUANTITY,
    ValidationError,
    coerce_decimal,
    coerce_integer,
    enforce_rules_movement,
    enforce_rules_product,
    enforce_rules_sale,
    parse_limit,
    validate_payload,
)


class TestCoercion:

    @pytest.mark.parametrize("raw,expected", [(5, 5), ("7", 7), (" 12 ", 12), (3.0, 3)])
    def test_integer_accepts(self, raw, expected):
        assert coerce_integer("quantity", raw) == expected

    @pytest.mark.parametrize("raw", [True, "1e3", "2.5", 2.5, "", "abc", None, [1]])
    def test_integer_rejects(self, raw):
        with pytest.raises(ValidationError):
            coerce_integer("quantity", raw)

    @pytest.mark.parametrize("raw", [10**30, str(10**30), 1e300, -(10**30)])
    def test_integer_out_of_range(self, raw):
        with pytest.raises(ValidationError, match="quantity is out of range"):
            coerce_integer("quantity", raw)

    def test_decimal_quantized_to_cents(self):
        assert coerce_decimal("price", "2.345") == Decimal("2.35")
        assert coerce_decimal("price", 4) == Decimal("4.00")

    @pytest.mark.parametrize("raw", [True, "NaN", "Infinity", "abc", "  "])
    def test_decimal_rejects(self, raw):
        with pytest.raises(ValidationError):
            coerce_decimal("price", raw)


class TestValidatePayload:

    def test_missing_fields_listed_sorted(self):
        with pytest.raises(ValidationError) as exc:
            validate_payload(model=Product, payload={}, policy=PRODUCT_POLICY, partial=False)
        assert str(exc.value) == "Missing required fields: name, price, sku"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            validate_payload(
                model=Product,
                payload={"id": 3, "name": "X", "sku": "X", "price": 1},
                policy=PRODUCT_POLICY,
                partial=False,
            )

    def test_partial_allows_subset(self):
        patch = validate_payload(model=Product, payload={"quantity": "4"}, policy=PRODUCT_POLICY, partial=True)
        assert patch == {"quantity": 4}

    def test_blank_optional_string_becomes_null(self):
        patch = validate_payload(
            model=Product, payload={"description": "   "}, policy=PRODUCT_POLICY, partial=True,
        )
        assert patch == {"description": None}

    def test_not_null_fields_enforced(self):
        with pytest.raises(ValidationError, match="quantity cannot be null"):
            validate_payload(model=Product, payload={"quantity": None}, policy=PRODUCT_POLICY, partial=True)

    def test_max_length_enforced(self):
        with pytest.raises(ValidationError, match="exceeds max length"):
            validate_payload(model=Product, payload={"sku": "S" * 101}, policy=PRODUCT_POLICY, partial=True)

    def test_non_dict_payload(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload=[1, 2], policy=PRODUCT_POLICY, partial=True)


class TestRules:

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"price": Decimal("-0.01")})

    def test_negative_quantity(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"quantity": -1})

    def test_sale_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            enforce_rules_sale({"quantity": 0})

    def test_movement_type_exact(self):
        patch = validate_payload(
            model=StockMovement,
            payload={"product_id": 1, "movement_type": "ADJUSTMENT", "quantity": 0},
            policy=MOVEMENT_POLICY,
            partial=False,
        )
        enforce_rules_movement(patch)
        assert patch["movement_type"] == "ADJUSTMENT"

    @pytest.mark.parametrize("movement_type", ["adjustment", "In", " OUT"])
    def test_movement_type_casing_rejected(self, movement_type):
        with pytest.raises(ValidationError, match="Invalid movement type"):
            enforce_rules_movement({"movement_type": movement_type, "quantity": 1})

    @pytest.mark.parametrize("field", ["quantity", "min_stock_level"])
    def test_product_quantities_capped(self, field):
        enforce_rules_product({field: MAX_QUANTITY})
        with pytest.raises(ValidationError, match=f"{field} cannot exceed"):
            enforce_rules_product({field: MAX_QUANTITY + 1})

    def test_sale_quantity_capped(self):
        with pytest.raises(ValidationError):
            enforce_rules_sale({"quantity": MAX_QUANTITY + 1})

    def test_movement_quantity_capped(self):
        with pytest.raises(ValidationError, match="Invalid quantity"):
            enforce_rules_movement({"movement_type": "IN", "quantity": MAX_QUANTITY + 1})

    def test_zero_category_means_none(self):
        patch = {"category_id": 0}
        enforce_rules_product(patch)
        assert patch == {"category_id": None}

    def test_movement_type_unknown(self):
        with pytest.raises(ValidationError, match="Invalid movement type"):
            enforce_rules_movement({"movement_type": "TRANSFER", "quantity": 1})

    def test_movement_quantity_negative(self):
        with pytest.raises(ValidationError, match="Invalid quantity"):
            enforce_rules_movement({"movement_type": "IN", "quantity": -1})


class TestParseLimit:

    @pytest.mark.parametrize("raw,expected", [
        (None, 20), ("", 20), ("abc", 20), ("0", 20), ("-3", 20), ("5", 5), ("500", 200),
    ])
    def test_limits(self, raw, expected):
        assert parse_limit(raw, default=20, maximum=200) == expected
