from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar, Union

E = TypeVar("E", bound=Enum)

_EPOCH = datetime(1970, 1, 1)


def is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def is_not_blank(value: Optional[str]) -> bool:
    return not is_blank(value)


def is_not_empty(value: Optional[str]) -> bool:
    return value is not None and value != ""


def clean_tags(tags: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Drop repeated tags, keeping order of first appearance. Tags are matched verbatim."""
    if tags is None:
        return None
    seen = []
    for tag in tags:
        if tag not in seen:
            seen.append(tag)
    return seen


def clean_statuses(
    statuses: Optional[Iterable[Union[E, str]]],
    enum_cls: Type[E],
) -> Optional[List[E]]:
    """
    Coerce statuses to members of enum_cls.

    Accepts members or their names in any case. Returns None when there is
    nothing to filter on.

    Raises:
        ValueError: a string that names no member of enum_cls
    """
    if not statuses:
        return None
    result: List[E] = []
    for status in statuses:
        if not isinstance(status, enum_cls):
            try:
                status = enum_cls[str(status).strip().upper()]
            except KeyError:
                allowed = ", ".join(m.name for m in enum_cls)
                raise ValueError(
                    f"Unknown {enum_cls.__name__} '{status}' (expected one of: {allowed})"
                ) from None
        if status not in result:
            result.append(status)
    return result or None


def epoch_millis_to_datetime(millis: Optional[int]) -> Optional[datetime]:
    """
    Epoch milliseconds to a naive UTC datetime.

    Values outside the datetime range clamp to datetime.min / datetime.max.
    """
    if millis is None:
        return None
    millis = int(millis)
    try:
        return _EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        return datetime.max if millis > 0 else datetime.min
