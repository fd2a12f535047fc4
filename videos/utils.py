import mimetypes
import os
import re

from django.utils.http import parse_header_parameters

_SAFE_EXT = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def parse_media_type(content_type: str | None) -> str | None:
    """'video/mp4; codecs=avc1' -> 'video/mp4'. Returns None if nothing usable was declared."""
    if not content_type:
        return None
    media_type, _ = parse_header_parameters(content_type)
    return media_type or None


def extension_for(filename: str | None, media_type: str | None = None) -> str:
    """
    Extension to carry over into the storage key. Taken from the uploaded
    filename when it looks sane, otherwise derived from the media type.
    """
    ext = os.path.splitext(os.path.basename(filename or ""))[1]
    if _SAFE_EXT.match(ext):
        return ext
    if media_type:
        return mimetypes.guess_extension(media_type) or ""
    return ""
