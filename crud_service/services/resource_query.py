from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import String, asc, cast, desc, func
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query

from crud_service.core.errors import BadResourceRequestError
from crud_service.schemas.resource import FilterPredicate, SortSpec

_LOG = logging.getLogger("crud_service.query")

DEFAULT_SORT = "id|desc"
FOREIGN_KEY_SUFFIX = "_id"


def parse_filter_payload(raw: Any) -> dict[str, Any]:
    """Accepts a mapping or its JSON encoding; anything else reads as no filter."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return {}
        try:
            decoded = json.loads(text)
        except ValueError:
            _LOG.warning("Ignoring filter that is not valid JSON: %.200s", text)
            return {}
        if isinstance(decoded, Mapping):
            return dict(decoded)
    _LOG.warning("Ignoring filter that is not a mapping: %r", type(raw).__name__)
    return {}


def _is_nested(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple, set))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def build_filter_predicates(filters: Mapping[str, Any]) -> list[FilterPredicate]:
    predicates: list[FilterPredicate] = []
    for key, value in filters.items():
        field = str(key)
        # Nested filtering on related resources is not supported.
        if _is_blank(value) or _is_nested(value):
            continue
        if field.endswith(FOREIGN_KEY_SUFFIX):
            predicates.append(FilterPredicate(field=field, op="=", value=value))
            continue
        if isinstance(value, bool):
            value = int(value)
        predicates.append(FilterPredicate(field=field, op="like", value=str(value).upper()))
    return predicates


def parse_sort(raw: str | None) -> SortSpec:
    text = str(raw or "").strip() or DEFAULT_SORT
    field, _, direction = text.partition("|")
    field = field.strip()
    direction = direction.strip().lower() or "asc"
    if not field:
        raise BadResourceRequestError("Campo de ordenação inválido.")
    if direction not in {"asc", "desc"}:
        raise BadResourceRequestError(f'Direção de ordenação inválida: "{direction}".')
    return SortSpec(field=field, dir=direction)


def resolve_column(model, field: str):
    """Mapped column attribute for ``field``, or None for anything that is not a column."""
    columns = sa_inspect(model).columns
    if field not in columns.keys():
        return None
    return getattr(model, field)


def _bad_value(column_key: str, kind: str) -> BadResourceRequestError:
    return BadResourceRequestError(f'Valor inválido para o campo "{column_key}" ({kind}).')


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except Exception:
        return None


def _coerce_bool(column_key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "t", "yes", "sim", "s"}:
        return True
    if text in {"0", "false", "f", "no", "nao", "não", "n"}:
        return False
    raise _bad_value(column_key, "boolean")


def _coerce_number(column_key: str, value, python_type):
    if isinstance(value, bool):
        raise _bad_value(column_key, "number")
    if python_type in {int, float} and isinstance(value, (int, float)):
        return python_type(value)
    if python_type is Decimal and isinstance(value, Decimal):
        return value
    normalized = str(value).strip().replace(",", ".")
    try:
        if python_type is Decimal:
            return Decimal(normalized)
        if python_type is int:
            number = float(normalized)
            if not number.is_integer():
                raise ValueError(normalized)
            return int(number)
        return python_type(normalized)
    except (ValueError, TypeError, InvalidOperation, OverflowError):
        raise _bad_value(column_key, "number")


def _coerce_date(column_key: str, value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    text = str(value).strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_value(column_key, "date")


def _coerce_datetime(column_key: str, value):
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_value(column_key, "datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def coerce_column_value(column, value):
    """Converts a raw request value to the column's Python type."""
    python_type = _column_python_type(column)
    key = getattr(column, "key", "?")
    if python_type is None or value is None:
        return value
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value).strip())
        except ValueError:
            raise _bad_value(key, "uuid")
    if python_type is bool:
        return _coerce_bool(key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number(key, value, python_type)
    if python_type is datetime:
        return _coerce_datetime(key, value)
    if python_type is date:
        return _coerce_date(key, value)
    return value


def coerce_primary_key(model, row_id: Any) -> Any:
    pk = sa_inspect(model).primary_key
    if len(pk) != 1:
        raise BadResourceRequestError("Somente recursos com chave primária simples são suportados.")
    pk_column = pk[0]
    try:
        python_type = pk_column.type.python_type
    except Exception:
        python_type = str
    if python_type is int:
        try:
            return int(str(row_id).strip())
        except ValueError:
            raise BadResourceRequestError("Identificador inválido.")
    if python_type is uuid.UUID:
        try:
            return uuid.UUID(str(row_id).strip())
        except ValueError:
            raise BadResourceRequestError("Identificador inválido.")
    return row_id


def _text_expression(column):
    if _column_python_type(column) is str:
        return column
    return cast(column, String)


def apply_filter_predicates(q: Query, model, predicates: list[FilterPredicate]) -> Query:
    for p in predicates:
        col = resolve_column(model, p.field)
        if col is None:
            _LOG.debug("Skipping filter on unknown field %r of %s", p.field, getattr(model, "__name__", model))
            continue
        if p.op == "=":
            q = q.filter(col == coerce_column_value(col, p.value))
        elif p.op == "like":
            q = q.filter(func.upper(_text_expression(col)).contains(p.value, autoescape=True))
    return q


def apply_sort(q: Query, model, sort: SortSpec) -> Query:
    col = resolve_column(model, sort.field)
    if col is None:
        raise BadResourceRequestError(f'Campo de ordenação desconhecido: "{sort.field}".')
    return q.order_by(asc(col) if sort.dir == "asc" else desc(col))
