from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from budget_guard.schemas.preferences import CurrencyFormat

FormatConfig = Union[CurrencyFormat, Mapping[str, Any], None]


def resolve_format(config: FormatConfig) -> CurrencyFormat:
    """Build a CurrencyFormat, falling back to the default for every unusable field.

    Accepts either snake_case or camelCase keys. A bad value never raises; it is
    replaced by the field default instead.
    """
    if isinstance(config, CurrencyFormat):
        return config
    if not isinstance(config, Mapping):
        return CurrencyFormat()

    values = {}
    for name, field in CurrencyFormat.model_fields.items():
        for key in (name, field.alias):
            if key in config and config[key] is not None:
                try:
                    CurrencyFormat.model_validate({name: config[key]})
                except ValidationError:
                    continue
                values[name] = config[key]
                break
    return CurrencyFormat(**values)


def format_currency(amount: float, config: FormatConfig = None) -> str:
    fmt = resolve_format(config)

    try:
        absolute = abs(Decimal(str(amount)))
    except InvalidOperation:
        absolute = Decimal(0)
    if not absolute.is_finite():
        absolute = Decimal(0)

    quantum = Decimal(1).scaleb(-fmt.decimal_places)
    rounded = absolute.quantize(quantum, rounding=ROUND_HALF_UP)

    int_part, _, frac_part = f"{rounded:f}".partition(".")
    grouped = f"{int(int_part):,}".replace(",", fmt.thousands_separator)
    number = grouped + fmt.decimal_separator + frac_part if frac_part else grouped

    if fmt.position == "after":
        result = number + fmt.symbol
    else:
        result = fmt.symbol + number

    return "-" + result if amount < 0 else result


def currency_format_for_symbol(symbol: Optional[str], base: FormatConfig = None) -> CurrencyFormat:
    """Same separators and placement as `base`, with the symbol swapped in."""
    fmt = resolve_format(base)
    if not symbol:
        return fmt
    return fmt.model_copy(update={"symbol": symbol})
