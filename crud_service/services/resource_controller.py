"""Generic CRUD controller over one SQLAlchemy model.

A controller is built once per resource from a :class:`ResourceSource` (the
table it writes to and, optionally, the projection it reads from) and a
:class:`ResourcePolicy` (per-resource validation rules and delete guard).
Every operation issues a single query through the session it is given.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.datastructures import URL

from crud_service.core.config import settings
from crud_service.core.errors import (
    INTEGRITY_MESSAGE,
    BadResourceRequestError,
    DependentRecordsError,
    ResourceNotFoundError,
)
from crud_service.schemas.resource import ListParams, OptionsParams
from crud_service.services.resource_query import (
    apply_filter_predicates,
    apply_sort,
    build_filter_predicates,
    coerce_column_value,
    coerce_primary_key,
    parse_filter_payload,
    parse_sort,
    resolve_column,
)
from crud_service.services.serialization import columns_map, mapping_to_dict, row_to_dict

_LOG = logging.getLogger("crud_service.resources")

ID_FIELD = "id"
ACTIVE_FIELD = "ativo"
_ALIAS_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ResourceSource:
    """Write target plus an optional read target (a view or joined projection)."""

    model: type
    view: type | None = None

    @property
    def read_model(self) -> type:
        return self.view if self.view is not None else self.model


class ResourcePolicy:
    """Per-resource hooks. The defaults never block deletes and validate nothing."""

    def is_delete_blocked(self, db: Session, row_id: Any) -> bool:
        return False

    def validation_rules(self) -> type[BaseModel] | None:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _alias_or_400(alias: str) -> str:
    text = str(alias or "").strip()
    if not _ALIAS_RE.fullmatch(text):
        raise BadResourceRequestError(f'Alias inválido: "{alias}".')
    return text


def _page_url(base: URL | None, page: int) -> str | None:
    if base is None:
        return None
    return str(base.include_query_params(page=page))


class ResourceController:
    def __init__(
        self,
        source: ResourceSource,
        policy: ResourcePolicy | None = None,
        *,
        name: str | None = None,
        default_per_page: int | None = None,
        max_per_page: int | None = None,
    ):
        self.source = source
        self.policy = policy or ResourcePolicy()
        self.name = name or getattr(source.model, "__tablename__", source.model.__name__)
        self.default_per_page = default_per_page or settings.DEFAULT_PER_PAGE
        self.max_per_page = max_per_page or settings.MAX_PER_PAGE

    def _per_page(self, requested: int | None) -> int:
        if requested is None or requested < 1:
            return self.default_per_page
        return min(requested, self.max_per_page)

    # -- index ------------------------------------------------------------

    def index(self, db: Session, params: ListParams, *, base_url: str | None = None) -> dict[str, Any]:
        model = self.source.read_model
        predicates = build_filter_predicates(parse_filter_payload(params.filter))
        sort = parse_sort(params.sort)

        query = apply_filter_predicates(db.query(model), model, predicates)
        query = apply_sort(query, model, sort)

        per_page = self._per_page(params.per_page)
        page = max(int(params.page or 1), 1)
        total = query.count()
        rows = query.offset((page - 1) * per_page).limit(per_page).all()
        last_page = max(math.ceil(total / per_page), 1)

        url = URL(base_url) if base_url else None
        first_item = (page - 1) * per_page + 1 if rows else None
        return {
            "current_page": page,
            "data": [row_to_dict(row) for row in rows],
            "from": first_item,
            "to": first_item + len(rows) - 1 if rows else None,
            "last_page": last_page,
            "per_page": per_page,
            "total": total,
            "path": str(url.replace(query="")) if url is not None else None,
            "first_page_url": _page_url(url, 1),
            "last_page_url": _page_url(url, last_page),
            "next_page_url": _page_url(url, page + 1) if page < last_page else None,
            "prev_page_url": _page_url(url, page - 1) if page > 1 else None,
        }

    # -- show -------------------------------------------------------------

    def show(self, db: Session, row_id: Any) -> dict[str, Any] | None:
        model = self.source.model
        row = db.get(model, coerce_primary_key(model, row_id))
        if row is None:
            return None
        return row_to_dict(row)

    # -- store ------------------------------------------------------------

    def _validate(self, data: dict[str, Any]) -> tuple[dict[str, Any], set[str]]:
        """Runs the rules model. Returns the data and the fields the rules covered."""
        rules = self.policy.validation_rules()
        if rules is None:
            return data, set()
        try:
            validated = rules.model_validate(data)
        except ValidationError as exc:
            errors = [
                {**err, "loc": ("body", *err.get("loc", ()))}
                for err in exc.errors(include_url=False, include_context=False)
            ]
            raise RequestValidationError(errors, body=data)
        coerced = validated.model_dump(by_alias=True)
        return {key: coerced.get(key, value) for key, value in data.items()}, set(coerced)

    def store(self, db: Session, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self.upsert(db, payload)[0]

    def upsert(self, db: Session, payload: Mapping[str, Any]) -> tuple[dict[str, Any], bool]:
        """Validates and writes ``payload``. The flag is True when a row was inserted."""
        if not isinstance(payload, Mapping):
            raise BadResourceRequestError("O corpo da requisição deve ser um objeto JSON.")
        model = self.source.model
        raw_id = payload.get(ID_FIELD)
        data, validated_fields = self._validate({key: value for key, value in payload.items() if key != ID_FIELD})

        unknown = sorted(set(data) - set(columns_map(model)))
        if unknown:
            raise BadResourceRequestError("Campos desconhecidos: " + ", ".join(unknown))
        for key in set(data) - validated_fields:
            data[key] = coerce_column_value(getattr(model, key), data[key])

        row_id = None if _is_blank(raw_id) else coerce_primary_key(model, raw_id)
        row = db.get(model, row_id) if row_id is not None else None
        if row is None:
            values = dict(data)
            if row_id is not None:
                values[ID_FIELD] = row_id
            row = model(**values)
            db.add(row)
            created = True
        else:
            for key, value in data.items():
                setattr(row, key, value)
            created = False

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            _LOG.info("%s store rejected by a data constraint (id=%s)", self.name, row_id)
            raise BadResourceRequestError(INTEGRITY_MESSAGE)
        db.refresh(row)
        result = row_to_dict(row)
        _LOG.info("%s %s id=%s", self.name, "created" if created else "updated", result.get(ID_FIELD))
        return result, created

    # -- destroy ----------------------------------------------------------

    def destroy(self, db: Session, row_id: Any) -> dict[str, bool]:
        model = self.source.model
        pk = coerce_primary_key(model, row_id)
        blocked = bool(self.policy.is_delete_blocked(db, pk))
        if blocked:
            _LOG.info("%s delete skipped by policy id=%s", self.name, pk)
            return {"success": True}

        row = db.get(model, pk)
        if row is None:
            raise ResourceNotFoundError()
        try:
            db.delete(row)
            db.commit()
        except IntegrityError:
            db.rollback()
            _LOG.info("%s delete refused, record has dependents id=%s", self.name, pk)
            raise DependentRecordsError()
        _LOG.info("%s deleted id=%s", self.name, pk)
        # "success" reports that the delete was skipped on purpose.
        return {"success": blocked}

    # -- options ----------------------------------------------------------

    def get_options(self, db: Session, params: OptionsParams, *, only_active: bool = False) -> list[dict[str, Any]]:
        model = self.source.read_model
        coluna = str(params.coluna or "").strip() or ID_FIELD
        column = resolve_column(model, coluna)
        id_column = resolve_column(model, ID_FIELD)
        if id_column is None:
            raise BadResourceRequestError(f'O recurso "{self.name}" não possui a coluna "{ID_FIELD}".')
        if column is None:
            raise BadResourceRequestError(f'Coluna desconhecida: "{coluna}".')

        id_alias = _alias_or_400(params.id_alias or ID_FIELD)
        labels = []
        if coluna != ID_FIELD:
            coluna_alias = _alias_or_400(params.coluna_alias or coluna)
            if coluna_alias == id_alias:
                raise BadResourceRequestError("Os aliases da coluna e do id devem ser diferentes.")
            labels.append(column.label(coluna_alias))
        labels.append(id_column.label(id_alias))

        query = db.query(*labels).distinct().filter(column.is_not(None))
        if only_active:
            active_column = resolve_column(model, ACTIVE_FIELD)
            if active_column is None:
                raise BadResourceRequestError(f'O recurso "{self.name}" não possui a coluna "{ACTIVE_FIELD}".')
            query = query.filter(active_column == 1)
        rows = query.order_by(labels[0].asc()).all()
        return [mapping_to_dict(row._mapping) for row in rows]

    def get_options_active(self, db: Session, params: OptionsParams) -> list[dict[str, Any]]:
        return self.get_options(db, params, only_active=True)
