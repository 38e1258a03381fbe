from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation


class InvalidPriceError(ValueError):
    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid price value: {value!r}")


@dataclass(frozen=True)
class Coin:
    amount: str
    denom: str

    def to_dict(self) -> dict[str, str]:
        return {"amount": self.amount, "denom": self.denom}


def to_base_units(display_price: str | int | float | Decimal, factor: int) -> int:
    """Convert a display price (e.g. 2.5 ATOM) to integer base units, rounding down."""
    try:
        amount = Decimal(str(display_price).strip())
    except InvalidOperation as exc:
        raise InvalidPriceError(display_price) from exc

    if not amount.is_finite() or amount < 0:
        raise InvalidPriceError(display_price)

    return int((amount * factor).to_integral_value(rounding=ROUND_FLOOR))


def to_display_units(base_units: int, factor: int) -> Decimal:
    return Decimal(base_units) / Decimal(factor)
