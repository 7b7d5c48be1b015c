# backend/utils/qr.py
import base64
import io
import logging
from dataclasses import dataclass

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage
from PIL import Image

from utils.errors import EncodingError

logger = logging.getLogger(__name__)

DETAIL_PATH_TEMPLATE = "/product/{id}"


@dataclass(frozen=True)
class QrOptions:
    width: int = 256
    margin: int = 2
    dark: str = "#000000"
    light: str = "#FFFFFF"
    format: str = "PNG"


QR_OPTIONS = QrOptions()


def build_payload_url(base_origin: str, product_id: str) -> str:
    """Canonical detail-page URL that a product's QR code points to."""
    return base_origin + DETAIL_PATH_TEMPLATE.format(id=product_id)


def _render(text: str, options: QrOptions) -> Image.Image:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=1,
        border=options.margin,
    )
    try:
        qr.add_data(text)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        logger.error("QR encoding failed for payload of %d chars: %s", len(text), e)
        raise EncodingError(f"Cannot encode text as QR code: {e}") from e

    # Scale whole modules up to the target width, then center on the background
    total_modules = qr.modules_count + 2 * options.margin
    qr.box_size = max(1, options.width // total_modules)
    img = qr.make_image(image_factory=PilImage, fill_color=options.dark, back_color=options.light).get_image().convert("RGB")

    if img.size[0] > options.width:
        return img.resize((options.width, options.width), Image.NEAREST)

    canvas = Image.new("RGB", (options.width, options.width), options.light)
    offset = (options.width - img.size[0]) // 2
    canvas.paste(img, (offset, offset))
    return canvas


def render_qr_image(text: str, options: QrOptions = QR_OPTIONS) -> bytes:
    """Encode ``text`` into a square QR raster and return the encoded image bytes."""
    img = _render(text, options)
    buffer = io.BytesIO()
    img.save(buffer, format=options.format)
    return buffer.getvalue()


def render_qr_data_uri(text: str, options: QrOptions = QR_OPTIONS) -> str:
    data = render_qr_image(text, options)
    mime = Image.MIME.get(options.format.upper(), "image/png")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
