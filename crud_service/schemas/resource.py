from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional

Op = Literal["=", "like"]
Dir = Literal["asc", "desc"]

class FilterPredicate(BaseModel):
    field: str
    op: Op
    value: Any

class SortSpec(BaseModel):
    field: str = "id"
    dir: Dir = "desc"

class ListParams(BaseModel):
    per_page: Optional[int] = None
    page: int = 1
    sort: Optional[str] = None
    filter: Any = None

class OptionsParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    coluna: str = "id"
    coluna_alias: Optional[str] = Field(default=None, alias="colunaAlias")
    id_alias: str = Field(default="id", alias="idAlias")

class PageEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    data: List[dict[str, Any]] = []
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None
    last_page: int
    per_page: int
    total: int
    path: Optional[str] = None
    first_page_url: Optional[str] = None
    last_page_url: Optional[str] = None
    next_page_url: Optional[str] = None
    prev_page_url: Optional[str] = None

class DeleteResult(BaseModel):
    success: bool
