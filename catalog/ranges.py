"""
Range filter normalizer.

Client date filters are objects with the keys e, gt, gte, lt and lte. They
are rewritten into store comparison operators; ``e`` means "any time during
that day" for author dates and exact equality for book instance return dates.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from catalog.dates import add_days, parse_date, utcnow
from catalog.models import DateRange

PASS_THROUGH_OPERATORS = ("gt", "gte", "lt", "lte")

RangeInput = Union[DateRange, Mapping[str, Any]]


def _as_mapping(range_filter: RangeInput) -> Dict[str, Any]:
    if isinstance(range_filter, DateRange):
        return range_filter.as_dict()
    return dict(range_filter)


def default_range(now: Optional[datetime] = None) -> Dict[str, datetime]:
    """The range used when a date filter is absent: everything up to now."""
    return {"lte": now or utcnow()}


def normalize_range(range_filter: RangeInput, expand_equals: bool = True) -> Dict[str, datetime]:
    """
    Rewrite a client range object into store operators.

    Args:
        range_filter: Object with any of e, gt, gte, lt, lte
        expand_equals: Expand ``e`` into the half-open day ``[e, e + 1 day)``;
            when False ``e`` becomes exact equality

    Returns:
        Mapping such as ``{"$gte": ..., "$lt": ...}``
    """
    values = _as_mapping(range_filter)
    operators: Dict[str, datetime] = {}

    for key in PASS_THROUGH_OPERATORS:
        if values.get(key) is not None:
            operators[f"${key}"] = parse_date(values[key])

    if values.get("e") is not None:
        start = parse_date(values["e"])
        if expand_equals:
            operators = {"$gte": start, "$lt": add_days(start)}
        else:
            operators = {"$eq": start}

    return operators


def author_date_filter(
    date_of_birth: Optional[RangeInput] = None,
    date_of_death: Optional[RangeInput] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the author life-date filter.

    Birth must fall in its range (default: up to now). Death must fall in
    its range (default: up to now) or be absent; the "absent" branch only
    applies when the caller gave no death filter.
    """
    now = now or utcnow()
    birth = normalize_range(date_of_birth if date_of_birth is not None else default_range(now))

    query: Dict[str, Any] = {}
    if birth:
        query["dateOfBirth"] = birth

    if date_of_death is not None:
        death = normalize_range(date_of_death)
        if death:
            query["dateOfDeath"] = death
        else:
            query["dateOfDeath"] = {"$ne": None}
    else:
        query["$or"] = [
            {"dateOfDeath": normalize_range(default_range(now))},
            {"dateOfDeath": None},
        ]

    return query


def back_filter(back: Optional[RangeInput]) -> Dict[str, Any]:
    """Book instance return-date filter; no default and no day expansion."""
    if back is None:
        return {}
    operators = normalize_range(back, expand_equals=False)
    return {"back": operators} if operators else {}
