from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from crud_service.db.session import Base
from crud_service.models.common import ActiveFlagMixin, IntegerIdMixin, TimestampMixin


class Estado(Base, IntegerIdMixin, ActiveFlagMixin, TimestampMixin):
    __tablename__ = "estados"

    nome: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    sigla: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)
    padrao: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
