from sqlalchemy import ForeignKey, Integer, String, select
from sqlalchemy.orm import Mapped, mapped_column

from crud_service.db.session import Base
from crud_service.models.common import ActiveFlagMixin, IntegerIdMixin, TimestampMixin
from crud_service.models.estado import Estado


class Cidade(Base, IntegerIdMixin, ActiveFlagMixin, TimestampMixin):
    __tablename__ = "cidades"

    nome: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    estado_id: Mapped[int] = mapped_column(Integer, ForeignKey("estados.id"), nullable=False, index=True)
    codigo_ibge: Mapped[str | None] = mapped_column(String(7), nullable=True)


_cidades_view = (
    select(
        Cidade.id,
        Cidade.nome,
        Cidade.estado_id,
        Cidade.codigo_ibge,
        Cidade.ativo,
        Estado.nome.label("estado_nome"),
        Estado.sigla.label("estado_sigla"),
    )
    .join_from(Cidade, Estado, Cidade.estado_id == Estado.id)
    .subquery("vw_cidades")
)


class CidadeView(Base):
    """Read-only projection of cidades with their estado name and sigla."""

    __table__ = _cidades_view
    __mapper_args__ = {"primary_key": [_cidades_view.c.id]}
