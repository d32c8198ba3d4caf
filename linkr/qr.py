"""
Default QR renderer for Linkr.

Draws the short URL as an SVG image with segno. Any callable with the same
signature can be passed to `create_app(qr_renderer=...)` instead.
"""

import io
from typing import Tuple

import segno

SVG_MEDIA_TYPE = "image/svg+xml"


def render_svg(short_url: str, scale: int = 8, border: int = 4) -> Tuple[bytes, str]:
    """
    Render `short_url` as a QR code.

    Returns:
        (bytes, str): SVG document and its media type.
    """
    qr = segno.make(short_url, error="m")
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=scale, border=border)
    return buf.getvalue(), SVG_MEDIA_TYPE
