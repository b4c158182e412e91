"""Renderização de pairing challenges."""

from app.infra.pairing.qr_renderer import DATA_URL_PREFIX, QrCodeRenderer

__all__ = ["DATA_URL_PREFIX", "QrCodeRenderer"]
