"""Подготовка загруженных изображений"""
import base64
import binascii
import re
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..config import settings

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


class InvalidImageError(ValueError):
    """Загруженный файл не является изображением"""


def strip_data_url(data: str) -> str:
    """Убирает префикс data:image/...;base64, если он есть"""
    return _DATA_URL_PREFIX.sub("", data.strip(), count=1)


def decode_base64_image(data: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url(data), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 payload: {e}") from e


def to_jpeg_base64(raw: bytes) -> str:
    """Перекодирует любое поддерживаемое изображение в JPEG (base64 без префикса).

    Модель получает картинку с MIME-типом image/jpeg, поэтому PNG/WebP
    конвертируются здесь. Ориентация из EXIF применяется к пикселям.
    """
    if not raw:
        raise InvalidImageError("Empty image payload")

    try:
        with Image.open(BytesIO(raw)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")

            buffer = BytesIO()
            img.save(buffer, format="JPEG", quality=settings.jpeg_quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidImageError(f"Cannot read image: {e}") from e

    return base64.b64encode(buffer.getvalue()).decode("ascii")
