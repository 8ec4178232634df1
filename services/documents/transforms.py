"""
Field Transforms

Functions that turn raw booking values into the strings substituted
for merge placeholders. Each transform is registered by name and can
be referenced from merge_fields.yml.

Usage in YAML:
    - key: performance_fee
      source: contract.value
      transform: currency_plain
"""

import logging
import re
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

TransformFunc = Callable[[Any], str]


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Parse numbers and formatted money strings; None when blank."""
    if isinstance(value, str):
        value = value.replace('$', '').replace(',', '').strip()
        if not value:
            return None
    return Decimal(str(value))


def transform_currency(value: Any) -> str:
    """
    Format a number as US currency with cents.

    Examples:
        5500 -> "$5,500.00"
        "1234.5" -> "$1,234.50"
    """
    if value is None:
        return ""
    try:
        amount = _to_decimal(value)
        if amount is None:
            return ""
        return f"${amount:,.2f}"
    except (InvalidOperation, ValueError, TypeError):
        logger.warning(f"Could not format as currency: {value}")
        return str(value)


def transform_currency_plain(value: Any) -> str:
    """
    Format a number as US currency, showing cents only when there are any.

    Examples:
        5500 -> "$5,500"
        5500.5 -> "$5,500.50"
        "2750.00" -> "$2,750"
    """
    if value is None:
        return ""
    try:
        amount = _to_decimal(value)
        if amount is None:
            return ""
        if amount == amount.to_integral_value():
            return f"${int(amount):,}"
        return f"${amount:,.2f}"
    except (InvalidOperation, ValueError, TypeError):
        logger.warning(f"Could not format as currency: {value}")
        return str(value)


def transform_date(value: Any) -> str:
    """
    Format a date in long US form.

    Examples:
        "2025-06-14" -> "June 14, 2025"
        date(2025, 6, 14) -> "June 14, 2025"
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%B %d, %Y")

    text = str(value).strip()
    if not text:
        return ""
    for fmt in ["%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y"]:
        try:
            return datetime.strptime(text, fmt).strftime("%B %d, %Y")
        except ValueError:
            continue

    logger.warning(f"Could not parse date: {value}")
    return text


def transform_phone(value: Any) -> str:
    """
    Format a phone number in US format.

    Examples:
        "7137254459" -> "(713) 725-4459"
        "+1 713 725 4459" -> "(713) 725-4459"
    """
    if value is None:
        return ""

    phone_str = str(value)
    digits = re.sub(r'\D', '', phone_str)
    if not digits:
        return ""
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == '1':
        return f"({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return phone_str


# Registry of available transforms
TRANSFORMS: Dict[str, TransformFunc] = {
    'currency': transform_currency,
    'currency_plain': transform_currency_plain,
    'date': transform_date,
    'phone': transform_phone,
}


def get_transform(name: str) -> Optional[TransformFunc]:
    """Get a transform function by name."""
    return TRANSFORMS.get(name)


def apply_transform(value: Any, transform_name: Optional[str]) -> str:
    """
    Apply a named transform to a value.

    If transform_name is None or not registered, returns str(value).
    None always becomes an empty string.
    """
    if value is None:
        return ""

    if not transform_name:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)

    transform_func = get_transform(transform_name)
    if transform_func:
        return transform_func(value)

    logger.warning(f"Unknown transform: {transform_name}")
    return str(value)


def register_transform(name: str, func: TransformFunc) -> None:
    """
    Register a custom transform function.

        from services.documents.transforms import register_transform
        register_transform('initials', my_initials_formatter)
    """
    TRANSFORMS[name] = func
    logger.debug(f"Registered transform: {name}")
