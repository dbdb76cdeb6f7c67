from crud_service.models.cidade import Cidade, CidadeView
from crud_service.models.estado import Estado

__all__ = ["Cidade", "CidadeView", "Estado"]
