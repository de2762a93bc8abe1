"""
QR code rendering for short URLs.

Produces a `data:image/png;base64,...` URL that front ends can drop straight
into an <img> tag.
"""

import base64
from io import BytesIO

import qrcode
import qrcode.constants


def qr_data_url(content: str, box_size: int = 8, border: int = 4) -> str:
    """Render `content` as a medium error-correction QR PNG data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(content)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode("ascii")
