"""
Line-item store: edits a FinancialData snapshot and returns a new one.

All user input is normalised here, so the aggregator and the projector only
ever see finite, non-negative numbers.
"""
import math
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Union

from finanzen.exceptions import InvalidFieldError
from finanzen.formatting import parse_currency
from finanzen.models import (
    ITEM_TYPES,
    Category,
    FinancialData,
    IncomeForecast,
    default_item,
    editable_fields,
)

CategoryLike = Union[Category, str]


def coerce_amount(value: Any) -> float:
    """Money and rate fields: unparsable, NaN, infinite or negative input becomes 0."""
    if value is None:
        return 0.0
    try:
        amount = parse_currency(value)
    except (ValueError, TypeError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def coerce_count(value: Any) -> int:
    return int(coerce_amount(value))


def coerce_date(value: Any) -> str:
    """Keep ``YYYY-MM-DD`` dates, clear anything else."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    if value is None:
        return ""
    text = str(value).strip()
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        return ""
    return text


def coerce_text(value: Any) -> str:
    return "" if value is None else str(value)


FIELD_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "description": coerce_text,
    "amount": coerce_amount,
    "loan_amount": coerce_amount,
    "outstanding_balance": coerce_amount,
    "total_installments": coerce_count,
    "monthly_interest_rate": coerce_amount,
    "annual_interest_rate": coerce_amount,
    "start_date": coerce_date,
    "end_date": coerce_date,
}

# Projection inputs are capped so every month stays a finite float and a valid calendar date
MAX_GROWTH_RATE = 1000.0
MAX_MONTHS_TO_FORECAST = 1200


def coerce_growth_rate(value: Any) -> float:
    return min(coerce_amount(value), MAX_GROWTH_RATE)


def coerce_horizon(value: Any) -> int:
    return min(coerce_count(value), MAX_MONTHS_TO_FORECAST)


FORECAST_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "growth_rate": coerce_growth_rate,
    "months_to_forecast": coerce_horizon,
}


def coerce_forecast(payload: Optional[Dict[str, Any]]) -> IncomeForecast:
    """Normalised forecast from a partial ``{"growth_rate", "months_to_forecast"}`` dict."""
    payload = payload or {}
    return IncomeForecast(
        **{name: coerce(payload[name]) for name, coerce in FORECAST_COERCERS.items() if name in payload}
    )


def next_id(data: FinancialData, category: CategoryLike) -> int:
    items = data.items(Category(category))
    return max((item.id for item in items), default=0) + 1


def add_item(data: FinancialData, category: CategoryLike) -> FinancialData:
    """Append an empty row with a fresh id."""
    category = Category(category)
    item = ITEM_TYPES[category](id=next_id(data, category))
    return data.with_items(category, data.items(category) + (item,))


def update_item(data: FinancialData, category: CategoryLike, item_id: int, field: str, value: Any) -> FinancialData:
    """
    Replace one field of the item with ``item_id``.
    An unknown id leaves the snapshot unchanged.
    """
    category = Category(category)
    if field not in editable_fields(ITEM_TYPES[category]):
        raise InvalidFieldError(f"'{field}' is not an editable field of {category.value} items")

    coerced = FIELD_COERCERS[field](value)
    items = [
        replace(item, **{field: coerced}) if item.id == item_id else item
        for item in data.items(category)
    ]
    return data.with_items(category, items)


def remove_item(data: FinancialData, category: CategoryLike, item_id: int) -> FinancialData:
    """Drop the item; each category always keeps at least one row."""
    category = Category(category)
    items = data.items(category)
    if len(items) <= 1:
        return data
    return data.with_items(category, [item for item in items if item.id != item_id])


def update_forecast(data: FinancialData, field: str, value: Any) -> FinancialData:
    if field not in FORECAST_COERCERS:
        raise InvalidFieldError(f"'{field}' is not an income forecast field")
    forecast = replace(data.income_forecast, **{field: FORECAST_COERCERS[field](value)})
    return replace(data, income_forecast=forecast)


def _items_from_dicts(category: Category, rows) -> tuple:
    item_type = ITEM_TYPES[category]
    allowed = editable_fields(item_type)
    items = []
    seen_ids = set()

    for row in rows or []:
        values = {name: FIELD_COERCERS[name](row[name]) for name in allowed if name in row}
        item_id = coerce_count(row.get("id"))
        if not item_id or item_id in seen_ids:
            item_id = max(seen_ids, default=0) + 1
        seen_ids.add(item_id)
        items.append(item_type(id=item_id, **values))

    if not items:
        items.append(default_item(category))
    return tuple(items)


def from_dict(payload: Dict[str, Any]) -> FinancialData:
    """Build a normalised snapshot from the ``FinancialData.to_dict()`` shape."""
    return FinancialData(
        income=_items_from_dicts(Category.INCOME, payload.get("income")),
        expenses=_items_from_dicts(Category.EXPENSES, payload.get("expenses")),
        debts=_items_from_dicts(Category.DEBTS, payload.get("debts")),
        income_forecast=coerce_forecast(payload.get("income_forecast")),
    )
