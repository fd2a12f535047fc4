import logging
import shutil

from PIL import Image

from .config import PipelineConfig, THUMBNAIL_MEDIA_TYPES
from .errors import InvalidImage, UnsupportedMediaType
from .keys import random_token
from .staging import stage
from .utils import parse_media_type

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg"}
_PIL_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}


def _matches_declared_format(path, media_type: str) -> bool:
    try:
        with Image.open(path) as img:
            fmt = img.format
            img.verify()
    except (OSError, SyntaxError, ValueError):
        return False
    return fmt == _PIL_FORMATS[media_type]


def store_thumbnail(stream, content_type: str | None, config: PipelineConfig) -> str:
    """
    Save an uploaded PNG/JPEG under ASSETS_ROOT with a random name and
    return its public asset URL. Bytes are staged and verified in the temp
    dir; only a verified image is moved into the served directory.
    """
    media_type = parse_media_type(content_type)
    if media_type not in THUMBNAIL_MEDIA_TYPES:
        raise UnsupportedMediaType(media_type, THUMBNAIL_MEDIA_TYPES)

    staged = stage(stream, config.max_thumbnail_bytes, suffix=".part", prefix="thumb-", directory=config.temp_dir)
    try:
        if not _matches_declared_format(staged.path, media_type):
            raise InvalidImage(f"Thumbnail is not a valid {media_type} image")
        name = random_token() + _EXTENSIONS[media_type]
        config.assets_root.mkdir(parents=True, exist_ok=True)
        shutil.move(staged.path, config.assets_root / name)
    except BaseException:
        staged.release()
        raise

    logger.info("Stored thumbnail %s (%d bytes)", name, staged.size)
    return f"{config.assets_base_url.rstrip('/')}/{name}"
