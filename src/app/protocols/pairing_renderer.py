"""Protocolo de renderização do pairing challenge."""

from __future__ import annotations

from typing import Protocol


class PairingRendererProtocol(Protocol):
    """Converte o token opaco de pareamento em imagem exibível."""

    def render(self, token: str) -> str:
        """Retorna a imagem como data URL."""
        ...
