from __future__ import annotations

import re
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session
from starlette.datastructures import QueryParams

from crud_service.core.errors import ResourceNotFoundError
from crud_service.db.session import get_db
from crud_service.schemas.resource import DeleteResult, ListParams, OptionsParams, PageEnvelope
from crud_service.services.resource_controller import ResourceController
from crud_service.services.resource_query import parse_filter_payload

_BRACKET_FILTER_RE = re.compile(r"^filter\[([^\[\]]+)\](.*)$")


def _filter_from_query(query_params: QueryParams) -> Any:
    """``filter`` as a JSON string, ``filter[field]=value`` params, or both merged."""
    bracket: dict[str, Any] = {}
    for key in query_params.keys():
        match = _BRACKET_FILTER_RE.fullmatch(key)
        if match is None:
            continue
        field, rest = match.groups()
        values = query_params.getlist(key)
        if rest or len(values) > 1:
            # filter[estado][nome]=... or filter[x][]=...; kept nested so it is skipped.
            bracket[field] = values
        else:
            bracket[field] = values[0]
    raw = query_params.get("filter")
    if not bracket:
        return raw
    merged = parse_filter_payload(raw)
    merged.update(bracket)
    return merged


def build_resource_router(controller: ResourceController, *, prefix: str, tags: list[str] | None = None) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=tags or [controller.name])

    @router.get("", response_model=PageEnvelope, response_model_by_alias=True)
    def index(
        request: Request,
        per_page: int | None = Query(default=None),
        page: int = Query(default=1),
        sort: str | None = Query(default=None),
        db: Session = Depends(get_db),
    ):
        params = ListParams(per_page=per_page, page=page, sort=sort, filter=_filter_from_query(request.query_params))
        return controller.index(db, params, base_url=str(request.url))

    @router.get("/options")
    def get_options(
        coluna: str = Query(default="id"),
        coluna_alias: str | None = Query(default=None, alias="colunaAlias"),
        id_alias: str = Query(default="id", alias="idAlias"),
        db: Session = Depends(get_db),
    ) -> list[dict[str, Any]]:
        params = OptionsParams(coluna=coluna, coluna_alias=coluna_alias, id_alias=id_alias)
        return controller.get_options(db, params)

    @router.get("/options/ativas")
    def get_options_active(
        coluna: str = Query(default="id"),
        coluna_alias: str | None = Query(default=None, alias="colunaAlias"),
        id_alias: str = Query(default="id", alias="idAlias"),
        db: Session = Depends(get_db),
    ) -> list[dict[str, Any]]:
        params = OptionsParams(coluna=coluna, coluna_alias=coluna_alias, id_alias=id_alias)
        return controller.get_options_active(db, params)

    @router.get("/{row_id}")
    def show(row_id: str, db: Session = Depends(get_db)) -> dict[str, Any]:
        row = controller.show(db, row_id)
        if row is None:
            raise ResourceNotFoundError()
        return row

    @router.post("")
    def store(payload: dict[str, Any], response: Response, db: Session = Depends(get_db)) -> dict[str, Any]:
        row, created = controller.upsert(db, payload)
        if created:
            response.status_code = 201
        return row

    @router.put("/{row_id}")
    def update(row_id: str, payload: dict[str, Any], response: Response, db: Session = Depends(get_db)) -> dict[str, Any]:
        row, created = controller.upsert(db, {**payload, "id": row_id})
        if created:
            response.status_code = 201
        return row

    @router.delete("/{row_id}", response_model=DeleteResult)
    def destroy(row_id: str, db: Session = Depends(get_db)):
        return controller.destroy(db, row_id)

    return router
