"""Rotas HTTP da API — adapter de entrada do bridge.

Responsabilidades:
- Definir endpoints HTTP (comandos, status, health)
- Autenticação do chamador (Bearer token)
- Validação inicial de request
- Delegação para use cases e supervisor

Estrutura:
- routes/bridge/: status, pairing, envio e repair
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
