import secrets

from .aspect import Orientation

# 32 random bytes -> 43 url-safe base64 characters, no padding.
KEY_ENTROPY_BYTES = 32


def random_token(nbytes: int = KEY_ENTROPY_BYTES) -> str:
    return secrets.token_urlsafe(nbytes)


def derive_key(orientation: Orientation, extension: str = "") -> str:
    """
    Unguessable object key such as ``landscape/<token>.mp4``.
    The prefix only groups objects; it carries no access semantics.
    """
    return f"{Orientation(orientation).value}/{random_token()}{extension}"
