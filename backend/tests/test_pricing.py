import pytest

from utils.pricing import (
    KitLine,
    PriceForm,
    aggregate_kit,
    kit_name,
    rate_from_price,
    sale_price_from_rate,
)


class TestPriceArithmetic:
    def test_sale_price_from_rate(self):
        assert sale_price_from_rate(10, 50) == pytest.approx(15.0)
        assert sale_price_from_rate(10, 0) == pytest.approx(10.0)

    def test_rate_from_price(self):
        assert rate_from_price(10, 15) == pytest.approx(50.0)
        assert rate_from_price(10, 8) == pytest.approx(-20.0)

    def test_zero_cost_gives_zero_rate(self):
        assert rate_from_price(0, 25) == 0.0

    def test_rate_and_price_are_inverse(self):
        price = sale_price_from_rate(12.5, 37.5)
        assert rate_from_price(12.5, price) == pytest.approx(37.5)


class TestKitAggregation:
    def test_totals_and_rate(self):
        totals = aggregate_kit([
            KitLine(unit_cost=2.0, unit_sale=3.0, quantity=2),
            KitLine(unit_cost=1.0, unit_sale=1.5, quantity=1),
        ])
        assert totals.total_cost == pytest.approx(5.0)
        assert totals.total_sale == pytest.approx(7.5)
        assert totals.implied_rate == 50.0

    def test_rate_is_rounded_to_two_decimals(self):
        totals = aggregate_kit([KitLine(unit_cost=3.0, unit_sale=4.0, quantity=1)])
        assert totals.implied_rate == 33.33

    def test_empty_kit(self):
        totals = aggregate_kit([])
        assert (totals.total_cost, totals.total_sale, totals.implied_rate) == (0.0, 0.0, 0.0)

    def test_kit_name_prefixes_multiples(self):
        assert kit_name([("Caneta", 2), ("Lápis", 1)]) == "2x Caneta + Lápis"
        assert kit_name([("Borracha", 1)]) == "Borracha"


class TestPriceForm:
    def test_rate_mode_moves_price_with_cost(self):
        form = PriceForm(cost_price=10, profit_rate=50, sale_price=15)
        form.set_cost(20)
        assert form.sale_price == pytest.approx(30.0)
        assert form.profit_rate == 50

    def test_price_mode_moves_rate_with_cost(self):
        form = PriceForm(cost_price=10, profit_rate=50, sale_price=15, mode="price")
        form.set_cost(12)
        assert form.sale_price == 15
        assert form.profit_rate == pytest.approx(25.0)

    def test_editing_rate_or_price(self):
        form = PriceForm(cost_price=10)
        form.set_rate(20)
        assert form.sale_price == pytest.approx(12.0)
        form.set_sale_price(15)
        assert form.profit_rate == pytest.approx(50.0)

    def test_zero_cost_price_entry(self):
        form = PriceForm(cost_price=0, mode="price")
        form.set_sale_price(9.9)
        assert form.profit_rate == 0.0

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            PriceForm().set_mode("margin")
