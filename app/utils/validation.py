"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
# weights are stored with three decimals (grams)
_WEIGHT_STEP = Decimal("0.001")


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод числа: заменить запятую на точку, убрать пробелы

    Example:
        >>> normalize_decimal_input(" 12,50 ")
        "12.50"
    """
    return value.strip().replace(",", ".")


def parse_price(value: str | int | float | Decimal, max_decimal_places: int = 2) -> Decimal:
    """
    Цена за килограмм: неотрицательное число, максимум 2 знака после запятой

    Raises:
        ValueError: если значение не является корректной ценой
    """
    normalized = normalize_decimal_input(str(value))
    try:
        price = Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError("Некорректная цена")

    if not price.is_finite() or price < 0:
        raise ValueError("Некорректная цена")

    pattern = rf"^\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        raise ValueError(f"Максимум {max_decimal_places} знака после запятой")

    return price


def parse_weight(value) -> Decimal:
    """
    Вес посылки из ячейки таблицы.

    Пустое, нечисловое или отрицательное значение даёт 0 (вес не указан).
    Округляется до грамма, как хранится в БД.

    Example:
        >>> parse_weight("2,5")
        Decimal("2.500")
        >>> parse_weight(None)
        Decimal("0")
    """
    if value is None:
        return Decimal("0")
    try:
        weight = Decimal(normalize_decimal_input(str(value)))
        if not weight.is_finite() or weight < 0:
            return Decimal("0")
        return weight.quantize(_WEIGHT_STEP, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return Decimal("0")


def phone_digits(phone: str) -> str:
    """Оставить только цифры номера: '+996 555 000-111' -> '996555000111'"""
    return re.sub(r"[^0-9]", "", phone or "")


def is_hex_color(value: str) -> bool:
    return bool(_HEX_COLOR_RE.match(value or ""))
