"""
Transaction filter schemas.

``FilterState`` describes one request's view of the transaction list or the
analytics chart. It is built from a query string or from the nested JSON
payload posted by the analytics form and never rejects input: malformed
values fall back to their defaults and non-numeric ids are dropped.
"""

from datetime import date
from typing import Any, Iterable, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from budgetbook.config import settings

TransactionType = Literal["all", "income", "expense"]
SortColumn = Literal["date", "amount", "description"]
SortDirection = Literal["asc", "desc"]
Period = Literal["month", "week"]

_TYPES = ("all", "income", "expense")
_SORT_COLUMNS = {"date": "date", "operation_date": "date", "amount": "amount", "description": "description"}
_NULL_COLUMNS = ("", "null", "none")
_PERIODS = ("month", "week")

# Ids and page numbers are bound as signed 64-bit integers
_INT_MIN = -(2 ** 63)
_INT_MAX = 2 ** 63 - 1


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed < _INT_MIN or parsed > _INT_MAX:
        return None
    return parsed


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return False


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _id_list(values: Any) -> List[int]:
    """Keep the numeric ids, in order, without duplicates."""
    if values is None:
        return []
    if isinstance(values, (str, int)):
        values = [values]
    ids: List[int] = []
    for raw in values:
        parsed = _to_int(raw)
        if parsed is not None and parsed not in ids:
            ids.append(parsed)
    return ids


def _choice(value: Any, choices: Iterable[str], default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    return default


def _unwrap(value: Any) -> Any:
    """``{"value": x}`` -> ``x``; the analytics form wraps scalars this way."""
    if isinstance(value, Mapping):
        return value.get("value")
    return value


def _page(value: Any) -> int:
    parsed = _to_int(value)
    return parsed if parsed is not None and parsed >= 1 else 1


def _page_size(value: Any) -> int:
    parsed = _to_int(value)
    if parsed is None or parsed < 1:
        return settings.default_page_size
    return min(parsed, settings.max_page_size)


def _sort_column(value: Any) -> Optional[str]:
    if value is None:
        return "date"
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _NULL_COLUMNS:
            return None
        return _SORT_COLUMNS.get(key, "date")
    return "date"


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_from: Optional[date] = Field(None, alias="from")
    date_to: Optional[date] = Field(None, alias="to")


class CategorySelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected: List[int] = []
    is_negative: bool = False


class SubcategorySelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected: List[int] = []


class SearchFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str = ""
    is_negative: bool = False


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: Optional[SortColumn] = "date"
    direction: SortDirection = "desc"


class FilterState(BaseModel):
    """Request-scoped view specification for listings and analytics."""

    model_config = ConfigDict(frozen=True)

    type: TransactionType = "all"
    date_range: DateRange = Field(default_factory=DateRange)
    categories: CategorySelection = Field(default_factory=CategorySelection)
    subcategories: SubcategorySelection = Field(default_factory=SubcategorySelection)
    search: SearchFilter = Field(default_factory=SearchFilter)
    sort: SortSpec = Field(default_factory=SortSpec)
    page: int = 1
    page_size: int = Field(default_factory=lambda: settings.default_page_size)
    period: Period = "month"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def effective_date_from(self) -> date:
        return self.date_range.date_from or settings.filter_epoch

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "FilterState":
        """Build from a listing query string (``QueryParams`` or a plain dict)."""

        def get(*keys: str) -> Any:
            for key in keys:
                value = params.get(key)
                if value is not None:
                    return value
            return None

        def get_list(*keys: str) -> List[Any]:
            for key in keys:
                if hasattr(params, "getlist"):
                    values = params.getlist(key)
                else:
                    values = params.get(key)
                if values:
                    return values if isinstance(values, list) else [values]
            return []

        return cls(
            type=_choice(get("type"), _TYPES, "all"),
            date_range=DateRange(
                date_from=_to_date(get("dateFrom")),
                date_to=_to_date(get("dateTo")),
            ),
            categories=CategorySelection(
                selected=_id_list(get_list("categories.selected[]", "categories.selected", "categories[]")),
                is_negative=_to_bool(get("categories.isNegative", "isNegative")),
            ),
            subcategories=SubcategorySelection(
                selected=_id_list(get_list("subcategories.selected[]", "subcategories.selected")),
            ),
            search=SearchFilter(
                value=(get("searchTerm", "search", "search.value") or "").strip(),
                is_negative=_to_bool(get("search.isNegative")),
            ),
            sort=SortSpec(
                column=_sort_column(get("sort.column")),
                direction=_choice(get("sort.direction"), ("asc", "desc"), "desc"),
            ),
            page=_page(get("page")),
            page_size=_page_size(get("pageSize")),
            period=_choice(get("period"), _PERIODS, "month"),
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "FilterState":
        """Build from the nested JSON shape posted by the analytics form."""
        if not isinstance(payload, Mapping):
            payload = {}

        def section(key: str) -> Mapping[str, Any]:
            value = payload.get(key)
            return value if isinstance(value, Mapping) else {}

        date_range = section("dateRange")
        categories = section("categories")
        subcategories = section("subcategories")
        search = section("search")
        sort = section("sort")
        search_value = search.get("value")
        # An explicit null column means "no sort column"
        sort_column = sort.get("column", "date")

        return cls(
            type=_choice(_unwrap(payload.get("type")), _TYPES, "all"),
            date_range=DateRange(
                date_from=_to_date(date_range.get("from")),
                date_to=_to_date(date_range.get("to")),
            ),
            categories=CategorySelection(
                selected=_id_list(categories.get("selected")),
                is_negative=_to_bool(categories.get("isNegative")),
            ),
            subcategories=SubcategorySelection(
                selected=_id_list(subcategories.get("selected")),
            ),
            search=SearchFilter(
                value=search_value.strip() if isinstance(search_value, str) else "",
                is_negative=_to_bool(search.get("isNegative")),
            ),
            sort=SortSpec(
                column=None if sort_column is None else _sort_column(sort_column),
                direction=_choice(sort.get("direction"), ("asc", "desc"), "desc"),
            ),
            page=_page(payload.get("page")),
            page_size=_page_size(payload.get("pageSize")),
            period=_choice(_unwrap(payload.get("period")), _PERIODS, "month"),
        )
