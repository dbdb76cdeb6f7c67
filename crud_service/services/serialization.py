from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.inspection import inspect as sa_inspect


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Any) -> dict[str, Any]:
    mapper = sa_inspect(type(row))
    return {column.key: serialize_value(getattr(row, column.key)) for column in mapper.column_attrs}


def mapping_to_dict(mapping: Any) -> dict[str, Any]:
    return {str(key): serialize_value(value) for key, value in mapping.items()}


def columns_map(model: type) -> dict[str, Any]:
    mapper = sa_inspect(model)
    return {attr.key: attr for attr in mapper.column_attrs}
