from fastapi import APIRouter
from crud_service.resources import cidades, estados

router = APIRouter()
router.include_router(estados.router)
router.include_router(cidades.router)
