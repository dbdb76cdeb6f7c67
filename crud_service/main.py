from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from crud_service.core.config import settings
from crud_service.core.errors import install_error_handlers
from crud_service.core.http_hardening import install_http_hardening
from crud_service.core.logging import configure_logging
from crud_service.api.router import router as resources_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_hardening(app)
install_error_handlers(app)

app.include_router(resources_router, prefix="/api")

@app.get("/health")
def health():
    return {"status": "ok", "service": settings.APP_NAME, "env": settings.APP_ENV}
