# backend/utils/pricing.py
"""
Price arithmetic shared by product forms, kits and the API.

Profit rate is a percentage markup over cost: ``sale = cost * (1 + rate / 100)``.
Nothing here raises; a zero cost yields a zero rate.
"""
from dataclasses import dataclass
from typing import Iterable, List, Literal, Tuple

PriceInputMode = Literal["rate", "price"]


def sale_price_from_rate(cost: float, rate: float) -> float:
    return cost * (1 + rate / 100)


def rate_from_price(cost: float, price: float) -> float:
    if cost == 0:
        return 0.0
    return (price / cost) * 100 - 100


@dataclass(frozen=True)
class KitLine:
    unit_cost: float
    unit_sale: float
    quantity: int


@dataclass(frozen=True)
class KitTotals:
    total_cost: float
    total_sale: float
    implied_rate: float


def aggregate_kit(lines: Iterable[KitLine]) -> KitTotals:
    total_cost = 0.0
    total_sale = 0.0
    for line in lines:
        total_cost += line.unit_cost * line.quantity
        total_sale += line.unit_sale * line.quantity
    # Only the aggregate rate is rounded; unit prices are formatted at display time
    implied_rate = round(rate_from_price(total_cost, total_sale), 2)
    return KitTotals(total_cost=total_cost, total_sale=total_sale, implied_rate=implied_rate)


def kit_name(items: Iterable[Tuple[str, int]]) -> str:
    """('Caneta', 2), ('Lápis', 1) -> '2x Caneta + Lápis'"""
    parts: List[str] = []
    for name, qty in items:
        parts.append(f"{qty}x {name}" if qty > 1 else name)
    return " + ".join(parts)


class PriceForm:
    """
    Cost / profit rate / sale price editor state.

    The mode picks the dependent field when cost changes: in ``rate`` mode the
    sale price follows, in ``price`` mode the rate follows. Editing the rate
    always moves the price and editing the price always moves the rate.
    Product creation uses it to fill in whichever of rate or price is missing.
    """

    def __init__(self, cost_price: float = 0.0, profit_rate: float = 0.0,
                 sale_price: float = 0.0, mode: PriceInputMode = "rate"):
        self.cost_price = cost_price
        self.profit_rate = profit_rate
        self.sale_price = sale_price
        self.mode = mode

    def set_mode(self, mode: PriceInputMode) -> None:
        if mode not in ("rate", "price"):
            raise ValueError(f"Unknown price input mode: {mode}")
        self.mode = mode

    def set_cost(self, cost: float) -> None:
        self.cost_price = cost
        if self.mode == "rate":
            self.sale_price = sale_price_from_rate(cost, self.profit_rate)
        else:
            self.profit_rate = rate_from_price(cost, self.sale_price)

    def set_rate(self, rate: float) -> None:
        self.profit_rate = rate
        self.sale_price = sale_price_from_rate(self.cost_price, rate)

    def set_sale_price(self, price: float) -> None:
        self.sale_price = price
        self.profit_rate = rate_from_price(self.cost_price, price)

    def as_dict(self) -> dict:
        return {
            "cost_price": self.cost_price,
            "profit_rate": self.profit_rate,
            "sale_price": self.sale_price,
        }
