from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from crud_service.api.resource_router import build_resource_router
from crud_service.models.cidade import Cidade, CidadeView
from crud_service.services.resource_controller import ResourceController, ResourcePolicy, ResourceSource


class CidadeRules(BaseModel):
    nome: str = Field(..., min_length=1, max_length=120)
    estado_id: int = Field(..., gt=0)
    codigo_ibge: Optional[str] = Field(default=None, pattern=r"^\d{7}$")
    ativo: Optional[Literal[0, 1]] = None


class CidadePolicy(ResourcePolicy):
    def validation_rules(self) -> type[BaseModel]:
        return CidadeRules


controller = ResourceController(
    ResourceSource(model=Cidade, view=CidadeView),
    CidadePolicy(),
    name="cidades",
)
router = build_resource_router(controller, prefix="/cidades", tags=["Cidades"])
