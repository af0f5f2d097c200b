"""Catalog adapter boundary.

The commerce catalog hands variant options to us in two shapes: a list of
option records (``[{"option": {"title": "Date"}, "value": "..."}]``) or a
flat mapping (``{"Date": "...", "Row Type": "..."}``). They are reduced here
to a single ``VariantOptions`` pair so nothing past this module branches on
shape.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Union

from boxoffice.calendar_day import to_calendar_day

DATE_OPTION = "Date"
CATEGORY_OPTION = "Row Type"


@dataclass(frozen=True)
class VariantOptions:
    show_date: Optional[date]
    category: Optional[str]


def _option_title(entry: Dict[str, Any]) -> Optional[str]:
    option = entry.get("option")
    if isinstance(option, dict):
        return option.get("title")
    return entry.get("title")


def _flatten(options: Union[List[Dict[str, Any]], Dict[str, Any], None]) -> Dict[str, Any]:
    if not options:
        return {}
    if isinstance(options, dict):
        return dict(options)
    flat = {}
    for entry in options:
        if not isinstance(entry, dict):
            continue
        title = _option_title(entry)
        if title:
            flat[title] = entry.get("value")
    return flat


def normalize_variant_options(options: Union[List[Dict[str, Any]], Dict[str, Any], None]) -> VariantOptions:
    flat = _flatten(options)
    raw_date = flat.get(DATE_OPTION)
    raw_category = flat.get(CATEGORY_OPTION)
    return VariantOptions(
        show_date=to_calendar_day(raw_date) if raw_date else None,
        category=str(raw_category) if raw_category else None,
    )
