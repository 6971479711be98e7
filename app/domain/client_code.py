"""
Client codes and pickup points (PVZ).

A client code is a 2-letter prefix followed by a number, e.g. "YQ443".
The prefix identifies the pickup point the client collects parcels from.
"""

PVZ_NARIMAN = "nariman"
PVZ_ZHIYDALIK = "zhiydalik"
PVZ_DOSTUK = "dostuk"

PVZ_LOCATIONS = (PVZ_NARIMAN, PVZ_ZHIYDALIK, PVZ_DOSTUK)

PREFIX_TO_PVZ = {
    "YQ": PVZ_NARIMAN,
    "YX": PVZ_ZHIYDALIK,
    "JL": PVZ_DOSTUK,
}

PVZ_TO_PREFIX = {pvz: prefix for prefix, pvz in PREFIX_TO_PVZ.items()}

PVZ_LABELS = {
    PVZ_NARIMAN: "Нариман, Ул. Сулайманова 32",
    PVZ_ZHIYDALIK: "Жийдалик, УПТК Наби Кожо 61Б",
    PVZ_DOSTUK: "Достук, Ул. Хабиба Абдуллаева 78",
}

# Warehouse in Yiwu: company name printed before the client code
_WAREHOUSE_COMPANY = {
    "YX": "御玺",
    "YQ": "优祺",
    "JL": "佳联",
}
_WAREHOUSE_PHONE = "15727306315"
_WAREHOUSE_STREET = "浙江省金华市义乌市北苑街道春晗二区36栋好运国际货运5697库"


def normalize_client_code(code: str | None) -> str:
    return (code or "").strip().upper()


def derive_pvz_location(code: str | None) -> str | None:
    """
    Pickup point for a client code, by its 2-letter prefix.

    Returns None for unknown prefixes and for codes shorter than 2 characters.

    >>> derive_pvz_location("YQ123")
    'nariman'
    >>> derive_pvz_location("Y") is None
    True
    """
    if not code or len(code) < 2:
        return None
    return PREFIX_TO_PVZ.get(code[:2])


def pvz_label(location: str) -> str:
    return PVZ_LABELS.get(location, location)


def format_client_code(prefix: str, number: int) -> str:
    return f"{prefix}{number}"


def parse_code_number(code: str, prefix: str) -> int | None:
    """Numeric part of a code with the given prefix ("YQ443" -> 443), else None"""
    if not code.startswith(prefix):
        return None
    tail = code[len(prefix):]
    return int(tail) if tail.isdigit() else None


def warehouse_address(code: str) -> str:
    """
    Address the client gives to sellers in China (multi-line, ready to copy)
    """
    company = _WAREHOUSE_COMPANY.get(code[:2], _WAREHOUSE_COMPANY["JL"])
    return (
        f"{company}{code}\n"
        f"{_WAREHOUSE_PHONE}\n"
        f"{_WAREHOUSE_STREET}\n"
        f"入仓号:{company}{code}"
    )
