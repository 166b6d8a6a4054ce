"""
Module: sgpc_kernel.db.types
Responsibility: Column type constants and rounding helpers for fixed-point
    quantity, money and percentage values.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and modules.  MUST NOT import from those layers.

Invariants enforced:
    - No floats.  Every quantity, price and percentage is a Decimal.
    - round_money() / round_percentage() are the only rounding entry points
      for values that are persisted or reported.
    - FixedDecimal columns are exact on every backend.  PostgreSQL stores
      NUMERIC; SQLite has no exact decimal storage class, so the value is
      stored as an integer count of 10**-scale units and SQL arithmetic
      and comparisons on it stay integral.

Failure modes:
    - On SQLite, magnitudes beyond 2**63 / 10**scale overflow INTEGER.
"""

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

# 0..100 with two decimals; money and quantities use the Base default FixedDecimal(38, 9)
PERCENTAGE_TYPE = Numeric(5, 2)

MONEY_DECIMAL_PLACES = 2
PERCENTAGE_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Coerce an int, str or Decimal to Decimal.

    Floats are rejected; they cannot represent most decimal fractions.

    Raises:
        TypeError: If value is a float.
    """
    if isinstance(value, float):
        raise TypeError(f"Float not allowed for fixed-point values: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


class FixedDecimal(TypeDecorator):
    """
    Exact fixed-point Decimal column.

    Bound values are quantized HALF_UP to ``scale`` places.  Floats are
    rejected on bind (see ``to_decimal``).
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 38, scale: int = 9):
        super().__init__(precision=precision, scale=scale)
        self.precision = precision
        self.scale = scale

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(self.precision, self.scale))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = to_decimal(value).quantize(
            Decimal(1).scaleb(-self.scale), rounding=ROUND_HALF_UP
        )
        if dialect.name == "sqlite":
            return int(value.scaleb(self.scale))
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            units = int(value)
            digits = str(abs(units)).rjust(self.scale + 1, "0")
            sign = "-" if units < 0 else ""
            if not self.scale:
                return Decimal(f"{sign}{digits}")
            return Decimal(f"{sign}{digits[:-self.scale]}.{digits[-self.scale:]}")
        return value


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value to ``decimal_places`` using ``rounding``."""
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def round_percentage(
    value: Decimal,
    decimal_places: int = PERCENTAGE_DECIMAL_PLACES,
) -> Decimal:
    """Round a percentage HALF_UP to ``decimal_places``."""
    return round_money(value, decimal_places, ROUND_HALF_UP)
