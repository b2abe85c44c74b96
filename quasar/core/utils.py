"""
Small helpers shared across services and migrations
"""
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

_CAMEL_BOUNDARY = re.compile(r'[_\-\s]+(\w)')
_SLUG_INVALID = re.compile(r'[^a-z0-9]+')

CENTS = Decimal("0.01")


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_money(value: Any) -> Decimal:
    """Coerce a number to a two-decimal Decimal"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_camel(name: str) -> str:
    """snake_case / kebab-case -> camelCase"""
    name = name.strip("_- ")
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


def slugify(value: str) -> str:
    return _SLUG_INVALID.sub('-', value.lower()).strip('-')


def shallow_merge(base: Optional[Dict[str, Any]], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(base or {})
    merged.update(override or {})
    return merged
