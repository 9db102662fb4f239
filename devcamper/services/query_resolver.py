"""
DevCamper API — Query Resolver
===============================

What:  Turns a list endpoint's query string into one SQL query plus a count,
       and wraps the page in the Result Envelope.
Why:   Every list endpoint (bootcamps, courses, reviews, users) supports the
       same filtering, field selection, sorting and pagination; the logic
       lives here once instead of in each route.
Who:   Route handlers call `query_resolver.resolve(db, Model, request.query_params, options)`.

Query string grammar:
    select=name,description        → projection (id always kept)
    sort=-average_cost,name        → ordered sort, "-" = descending
                                     (default: -created_at)
    page=2&limit=10                → offset/limit window (defaults 1 / 25)
    housing=true                   → Equals
    average_cost[lte]=10000        → Compare (gt | gte | lt | lte)
    careers[in]=Business,UI/UX     → InSet (comma list and/or repeated key)

    Anything else is an Equals filter on the literal key. A key that is not a
    filterable column of the resource (e.g. `price[foo]`, `password_hash`)
    matches nothing: the query still runs and returns an empty page.

Count semantics:
    `total` (used only for the next/prev links) counts the whole collection
    unless `count_filtered` is on, in which case the filters apply to the
    count too. The default comes from QUERY_COUNT_FILTERED.
"""

import logging
import operator
import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON, String, cast, false, func, inspect, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only, selectinload

from devcamper.config import settings
from devcamper.exceptions import ValidationError
from devcamper.schemas.common import PageLink, ResultEnvelope

logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})

COMPARE_OPS = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

DEFAULT_SORT = "-created_at"

# field[op]; op is checked against the known tokens as a whole word
_OPERATOR_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]+)\]$")


# ══════════════════════════════════════════════════════════════════════════
# Filter Expressions
# ══════════════════════════════════════════════════════════════════════════


class Equals(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    value: str


class Compare(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    op: Literal["gt", "gte", "lt", "lte"]
    value: str


class InSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    values: Tuple[str, ...]


FilterExpression = Union[Equals, Compare, InSet]


class ResolveOptions(BaseModel):
    """
    Per-endpoint resolver settings.

    Attributes:
        populate:        Relation to eager-load into each record (e.g. "courses").
        populate_fields: Columns kept on each populated record (+ id). None = all.
        allowed_fields:  Columns clients may filter on. None = every public column.
        count_filtered:  Apply filters to the total count. None = QUERY_COUNT_FILTERED.
    """

    model_config = ConfigDict(frozen=True)

    populate: Optional[str] = None
    populate_fields: Optional[Tuple[str, ...]] = None
    allowed_fields: Optional[FrozenSet[str]] = None
    count_filtered: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Query-string parsing (pure functions)
# ══════════════════════════════════════════════════════════════════════════


def _param_pairs(raw_params: Any) -> List[Tuple[str, str]]:
    """
    Flatten a mapping, a multi-mapping (Starlette QueryParams) or a mapping of
    lists into (key, value) pairs, keeping repeated keys.
    """
    if raw_params is None:
        return []
    if hasattr(raw_params, "multi_items"):
        return [(str(k), str(v)) for k, v in raw_params.multi_items()]
    pairs: List[Tuple[str, str]] = []
    items = raw_params.items() if isinstance(raw_params, Mapping) else raw_params
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), str(v)) for v in value)
        else:
            pairs.append((str(key), str(value)))
    return pairs


def parse_filters(pairs: Iterable[Tuple[str, str]]) -> List[FilterExpression]:
    """
    Build Filter Expressions from non-reserved query parameters.

    A key seen more than once keeps its last value, except for `[in]`
    keys, whose values are all collected (and split on commas).
    """
    grouped: Dict[str, List[str]] = {}
    for key, value in pairs:
        if key in RESERVED_PARAMS:
            continue
        grouped.setdefault(key, []).append(value)

    filters: List[FilterExpression] = []
    for key, values in grouped.items():
        match = _OPERATOR_KEY.match(key)
        op = match.group("op") if match else None
        if op in COMPARE_OPS:
            filters.append(Compare(field=match.group("field"), op=op, value=values[-1]))
        elif op == "in":
            members = tuple(
                part.strip()
                for value in values
                for part in value.split(",")
                if part.strip()
            )
            filters.append(InSet(field=match.group("field"), values=members))
        else:
            filters.append(Equals(field=key, value=values[-1]))
    return filters


def _split_fields(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_window(raw_page: Optional[str], raw_limit: Optional[str]) -> Tuple[int, int]:
    """(page, limit); unparseable or non-positive values fall back to 1 / default limit."""
    return _positive_int(raw_page, 1), _positive_int(raw_limit, settings.query_default_limit)


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


# ══════════════════════════════════════════════════════════════════════════
# Value coercion (query-string text → column Python type)
# ══════════════════════════════════════════════════════════════════════════


def _bad_value(field: str, value: str, kind: str) -> ValidationError:
    return ValidationError(
        message=f"Invalid {kind} value '{value}' for field '{field}'",
        field=field,
    )


def _coerce(field: str, column, value: str) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    text = value.strip()
    if python_type is bool:
        lowered = text.lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
        raise _bad_value(field, value, "boolean")
    if python_type in (int, float, Decimal):
        try:
            return python_type(text)
        except (ValueError, InvalidOperation):
            raise _bad_value(field, value, "numeric")
    if python_type is uuid.UUID:
        try:
            return uuid.UUID(text)
        except ValueError:
            raise _bad_value(field, value, "id")
    if python_type is datetime:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_value(field, value, "datetime")
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if python_type is date:
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise _bad_value(field, value, "date")
    return value


def _json_contains(column, value: str):
    """Membership test on a JSON list column, e.g. careers=Business."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return cast(column, String).like(f'%"{escaped}"%', escape="\\")


# ══════════════════════════════════════════════════════════════════════════
# Resolver
# ══════════════════════════════════════════════════════════════════════════


class QueryResolver:
    """
    Stateless: every query plan is derived from the request and thrown away.

    Store errors (connection loss, etc.) propagate unchanged to the global
    error handler; nothing is retried here.
    """

    @staticmethod
    def public_columns(model) -> Dict[str, Any]:
        """Column attributes clients may see, keyed by attribute name."""
        hidden = getattr(model, "__hidden__", frozenset())
        return {
            attr.key: getattr(model, attr.key)
            for attr in inspect(model).column_attrs
            if attr.key not in hidden
        }

    def build_predicate(self, model, expr: FilterExpression, allowed: FrozenSet[str]):
        columns = self.public_columns(model)
        if expr.field not in allowed or expr.field not in columns:
            # Missing field: a document store would match nothing
            return false()
        column = columns[expr.field]

        if isinstance(column.type, JSON):
            if isinstance(expr, Equals):
                return _json_contains(column, expr.value)
            if isinstance(expr, InSet):
                if not expr.values:
                    return false()
                return or_(*(_json_contains(column, v) for v in expr.values))
            raise ValidationError(
                message=f"Operator '{expr.op}' is not supported on list field '{expr.field}'",
                field=expr.field,
            )

        if isinstance(expr, Equals):
            return column == _coerce(expr.field, column, expr.value)
        if isinstance(expr, Compare):
            return COMPARE_OPS[expr.op](column, _coerce(expr.field, column, expr.value))
        return column.in_([_coerce(expr.field, column, v) for v in expr.values])

    def build_order(self, model, raw_sort: Optional[str]) -> List[Any]:
        columns = self.public_columns(model)
        order = []
        seen = set()
        for token in _split_fields(raw_sort) or _split_fields(DEFAULT_SORT):
            descending = token.startswith("-")
            name = token.lstrip("-")
            if name not in columns or name in seen:
                continue
            # JSON has no ordering operator on PostgreSQL
            if isinstance(columns[name].type, JSON):
                continue
            seen.add(name)
            order.append(columns[name].desc() if descending else columns[name].asc())
        if not order and raw_sort and "created_at" in columns:
            order.append(columns["created_at"].desc())
        # Stable pages when sort keys tie
        if "id" not in seen:
            order.append(columns["id"].asc())
        return order

    async def resolve(
        self,
        db: AsyncSession,
        model,
        raw_params: Any,
        options: Optional[ResolveOptions] = None,
    ) -> ResultEnvelope:
        """
        Execute a list query for `model` driven by `raw_params`.

        Returns:
            ResultEnvelope with the page of records (dicts) and next/prev links.

        Raises:
            ValidationError: a filter value cannot be coerced to its column type.
        """
        options = options or ResolveOptions()
        columns = self.public_columns(model)
        allowed = options.allowed_fields if options.allowed_fields is not None else frozenset(columns)

        pairs = _param_pairs(raw_params)
        modifiers = {key: value for key, value in pairs if key in RESERVED_PARAMS}
        filters = parse_filters(pairs)
        predicates = [self.build_predicate(model, f, allowed) for f in filters]

        projection: Optional[List[str]] = None
        if modifiers.get("select"):
            projection = [f for f in _split_fields(modifiers["select"]) if f in columns]

        page, limit = parse_window(modifiers.get("page"), modifiers.get("limit"))
        skip = (page - 1) * limit

        stmt = select(model)
        if predicates:
            stmt = stmt.where(*predicates)
        if projection is not None:
            stmt = stmt.options(load_only(*self._load_columns(model, columns, projection, options.populate)))
        if options.populate:
            stmt = stmt.options(selectinload(getattr(model, options.populate)))
        stmt = stmt.order_by(*self.build_order(model, modifiers.get("sort"))).offset(skip).limit(limit)

        logger.debug(
            "Resolving %s: filters=%s select=%s sort=%s page=%d limit=%d",
            model.__tablename__,
            filters,
            projection,
            modifiers.get("sort") or DEFAULT_SORT,
            page,
            limit,
        )

        records = (await db.execute(stmt)).scalars().all()

        count_filtered = options.count_filtered
        if count_filtered is None:
            count_filtered = settings.query_count_filtered
        count_stmt = select(func.count()).select_from(model)
        if count_filtered and predicates:
            count_stmt = count_stmt.where(*predicates)
        total = (await db.execute(count_stmt)).scalar_one()

        relations = {options.populate: options.populate_fields} if options.populate else None
        data = [record.to_dict(fields=projection, relations=relations) for record in records]

        pagination: Dict[str, PageLink] = {}
        if skip + limit < total:
            pagination["next"] = PageLink(page=page + 1, limit=limit)
        if skip > 0:
            pagination["prev"] = PageLink(page=page - 1, limit=limit)

        return ResultEnvelope(success=True, count=len(data), pagination=pagination, data=data)

    @staticmethod
    def _load_columns(model, columns: Dict[str, Any], projection: Sequence[str], populate: Optional[str]):
        """Projected columns + id + the local key columns a populate needs."""
        names = ["id", *[f for f in projection if f != "id"]]
        if populate:
            relationship = inspect(model).relationships[populate]
            for col in relationship.local_columns:
                key = inspect(model).get_property_by_column(col).key
                if key not in names:
                    names.append(key)
        return [columns[name] for name in names]


# ── Singleton Instance ────────────────────────────────────────────────────
query_resolver = QueryResolver()
