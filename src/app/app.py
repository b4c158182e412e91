"""Entrypoint da aplicação wa-bridge-lite.

Este módulo é o ponto de entrada principal do serviço.
Inicializa o bootstrap, sobe o LifecycleSupervisor no lifespan e expõe
a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 3000

Uso (desenvolvimento):
    python -m app.app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import initialize_app, log_startup_diagnostics, validate_runtime_settings
from app.bootstrap.dependencies import create_supervisor
from config.logging import get_logger
from config.settings import get_bridge_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from app.lifecycle import LifecycleSupervisor
    from config.settings import BridgeSettings

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

SERVICE_NAME = "wa-bridge-lite"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações e loga diagnóstico (token mascarado)
    - Cria e inicia o supervisor (se não foi injetado)

    Shutdown:
    - Cancela timers e fecha o Session Handle ativo
    """
    logger.info("app_starting", extra={"service": SERVICE_NAME})
    supervisor: LifecycleSupervisor | None = app.state.supervisor
    owns_supervisor = supervisor is None

    if owns_supervisor:
        validate_runtime_settings()
        log_startup_diagnostics()
        supervisor = create_supervisor(app.state.bridge_settings)
        app.state.supervisor = supervisor
        await supervisor.start()

    yield

    logger.info("app_shutting_down", extra={"service": SERVICE_NAME})
    if owns_supervisor and supervisor is not None:
        await supervisor.stop()


def create_app(
    supervisor: LifecycleSupervisor | None = None,
    settings: BridgeSettings | None = None,
) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        supervisor: Supervisor já montado (testes); None cria no startup
        settings: Settings do bridge; None lê do ambiente

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="wa-bridge-lite",
        description="Bridge HTTP para sessão WhatsApp com reconexão supervisionada",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.supervisor = supervisor
    fastapi_app.state.bridge_settings = settings or get_bridge_settings()

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Registra todas as rotas
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": SERVICE_NAME})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta."""
    import uvicorn

    port = get_bridge_settings().port
    logger.info("bridge_listening", extra={"port": port})
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=port,
    )


if __name__ == "__main__":
    main()
