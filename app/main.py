# app/main.py
import os
from dotenv import load_dotenv

# 1) cargar variables de entorno del .env
load_dotenv()

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.ai import router as ai_router
from app.api.notifications import router as notifications_router
from app.api.preferences import router as preferences_router
from app.errors import NotificationServiceError
from app.infra.ai_client import WorkersAIClient
from app.infra.kv_store import KeyValueStore, build_kv_store
from app.services.classifier import Classifier
from app.services.notification_store import NotificationStore

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# se matchea por sufijo: /lo/que/sea/api/notifications también entra
ROUTE_SUFFIXES = ("/api/notifications", "/api/preferences", "/api/ai")


def create_app(
    kv_store: Optional[KeyValueStore] = None,
    ai_client=None,
) -> FastAPI:
    # sin /docs, /redoc ni /openapi.json, y sin redirect de "/" final:
    # todo lo que no esté en la tabla de rutas es 404
    app = FastAPI(
        title="Notification Service",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    # 2) clientes externos: se crean una vez y los handlers los piden por Depends
    kv_store = kv_store or build_kv_store()
    ai_client = ai_client or WorkersAIClient()
    app.state.notification_store = NotificationStore(kv_store)
    app.state.classifier = Classifier(ai_client)

    # 3) CORS + ruteo por sufijo
    @app.middleware("http")
    async def cors_and_suffix_routing(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)

        path = request.scope["path"]
        for suffix in ROUTE_SUFFIXES:
            if path.endswith(suffix):
                request.scope["path"] = suffix
                break

        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    # 4) errores de dominio -> texto plano con su status
    @app.exception_handler(NotificationServiceError)
    async def service_error_handler(request: Request, exc: NotificationServiceError):
        if exc.status_code >= 500:
            logger.error("❗ %s %s -> %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rechazado: %s", request.method, request.url.path, exc.message)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # ruta o método desconocido -> 404 genérico
        if exc.status_code in (404, 405):
            return PlainTextResponse("Invalid request", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    # 5) Rutas REST
    app.include_router(notifications_router)
    app.include_router(preferences_router)
    app.include_router(ai_router)

    @app.on_event("shutdown")
    async def shutdown_event():
        await kv_store.close()
        await ai_client.close()

    return app


app = create_app()
