"""Renderização do pairing challenge como QR code (SVG em data URL).

SVG dispensa Pillow e é exibido diretamente por qualquer navegador.
"""

from __future__ import annotations

import base64
import io

import qrcode
import qrcode.image.svg

DATA_URL_PREFIX = "data:image/svg+xml;base64,"


class QrCodeRenderer:
    """Converte o token de pareamento em QR code SVG.

    Args:
        box_size: Pixels por módulo do QR
        border: Largura da borda em módulos
    """

    def __init__(self, box_size: int = 10, border: int = 2) -> None:
        if box_size < 1 or border < 0:
            raise ValueError("box_size deve ser >= 1 e border >= 0")
        self._box_size = box_size
        self._border = border

    def render_svg(self, token: str) -> bytes:
        """Retorna o SVG bruto do QR code."""
        if not token:
            raise ValueError("token de pareamento não pode ser vazio")
        qr = qrcode.QRCode(
            version=None,
            box_size=self._box_size,
            border=self._border,
            image_factory=qrcode.image.svg.SvgPathImage,
        )
        qr.add_data(token)
        qr.make(fit=True)

        buffer = io.BytesIO()
        qr.make_image().save(buffer)
        return buffer.getvalue()

    def render(self, token: str) -> str:
        """Retorna o QR code como data URL pronta para `<img src>`."""
        encoded = base64.b64encode(self.render_svg(token)).decode("ascii")
        return f"{DATA_URL_PREFIX}{encoded}"
