"""
Phone number normalization.

Brazil-biased heuristic mapping free-form identifiers (formatted numbers,
``wa.me`` links) to ``+<digits>``. No numbering-plan validation is done.
"""

import re

BRAZIL_COUNTRY_CODE = "55"
MOBILE_PREFIX = "9"

WA_ME_PATTERN = re.compile(r"wa\.me/(\d+)", re.IGNORECASE | re.ASCII)
NON_DIGIT_PATTERN = re.compile(r"\D", re.ASCII)


def normalize_phone(raw: str | None) -> str | None:
    """Normalize a raw identifier to canonical ``+<digits>`` form.

    Rules, first match wins:

    1. 12 digits starting with 55: country + area code + 8 digit number
       missing the mobile ``9``; the ``9`` is inserted after the area code.
    2. Starts with 55: already a complete Brazilian number.
    3. 10 or 11 digits: area code + number, 55 is prefixed.
    4. 12 digits or more: generic international number.
    5. Anything else is returned as is with a ``+``.

    Short digit strings are accepted by the fallback rule; only inputs with
    no digits at all are rejected.

    Args:
        raw: Raw identifier, possibly None.

    Returns:
        Canonical phone string, or None when no digits can be extracted.
    """
    if not raw:
        return None
    s = str(raw).strip()

    match = WA_ME_PATTERN.search(s)
    if match:
        s = match.group(1)

    digits = NON_DIGIT_PATTERN.sub("", s)
    if not digits:
        return None

    if len(digits) == 12 and digits.startswith(BRAZIL_COUNTRY_CODE):
        country, area, rest = digits[:2], digits[2:4], digits[4:]
        return f"+{country}{area}{MOBILE_PREFIX}{rest}"

    if digits.startswith(BRAZIL_COUNTRY_CODE):
        return f"+{digits}"

    if len(digits) in (10, 11):
        return f"+{BRAZIL_COUNTRY_CODE}{digits}"

    if len(digits) >= 12:
        return f"+{digits}"

    return f"+{digits}"


def to_raw_number(phone: str) -> str:
    """Strip ``+`` and any other non-digit, as expected by recipient lookups."""
    return NON_DIGIT_PATTERN.sub("", phone)
