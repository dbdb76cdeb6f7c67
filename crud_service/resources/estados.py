from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from crud_service.api.resource_router import build_resource_router
from crud_service.models.estado import Estado
from crud_service.services.resource_controller import ResourceController, ResourcePolicy, ResourceSource


class EstadoRules(BaseModel):
    nome: str = Field(..., min_length=1, max_length=120)
    sigla: str = Field(..., pattern=r"^[A-Za-z]{2}$")
    ativo: Optional[Literal[0, 1]] = None
    padrao: Optional[bool] = None


class EstadoPolicy(ResourcePolicy):
    def is_delete_blocked(self, db: Session, row_id: Any) -> bool:
        # The default estado pre-fills forms and is never removed.
        estado = db.get(Estado, row_id)
        return bool(estado is not None and estado.padrao)

    def validation_rules(self) -> type[BaseModel]:
        return EstadoRules


controller = ResourceController(ResourceSource(model=Estado), EstadoPolicy(), name="estados")
router = build_resource_router(controller, prefix="/estados", tags=["Estados"])
