# Overview: Pytest coverage for integer-cent money helpers.

from decimal import Decimal

import pytest

from clubcash.errors import ValidationError
from clubcash.money import (
    MAX_AMOUNT_CENTS, format_cents, require_non_negative_cents, require_positive_cents, to_cents,
)


class TestToCents:

    def test_int_is_already_cents(self):
        assert to_cents(1234) == 1234

    def test_decimal_string_with_dot_or_comma(self):
        assert to_cents("12.34") == 1234
        assert to_cents("12,34") == 1234
        assert to_cents(" 100 ") == 10000

    def test_decimal_value(self):
        assert to_cents(Decimal("0.10")) == 10

    def test_float_rejected(self):
        with pytest.raises(ValidationError):
            to_cents(12.34)

    def test_sub_cent_precision_rejected(self):
        with pytest.raises(ValidationError, match="sub-cent"):
            to_cents("1.005")

    @pytest.mark.parametrize("raw", ["1e3", "", "abc", "NaN"])
    def test_garbage_rejected(self, raw):
        with pytest.raises(ValidationError):
            to_cents(raw)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            to_cents(True)


class TestAmountValidation:

    def test_positive_required(self):
        assert require_positive_cents(1) == 1
        with pytest.raises(ValidationError):
            require_positive_cents(0)
        with pytest.raises(ValidationError):
            require_positive_cents(-100)

    def test_upper_bound(self):
        assert require_positive_cents(MAX_AMOUNT_CENTS) == MAX_AMOUNT_CENTS
        with pytest.raises(ValidationError):
            require_positive_cents(MAX_AMOUNT_CENTS + 1)

    def test_non_negative_allows_zero(self):
        assert require_non_negative_cents(0) == 0
        with pytest.raises(ValidationError):
            require_non_negative_cents(-1)

    def test_string_amount_not_accepted_as_cents(self):
        with pytest.raises(ValidationError):
            require_positive_cents("100")


class TestFormatCents:

    def test_brl_grouping(self):
        assert format_cents(123456) == "R$ 1.234,56"
        assert format_cents(5) == "R$ 0,05"
        assert format_cents(-5000) == "-R$ 50,00"
