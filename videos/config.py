from dataclasses import dataclass
from pathlib import Path

URL_MODE_SIGNED = "signed"
URL_MODE_STATIC = "static"

VIDEO_MEDIA_TYPES = frozenset({"video/mp4"})
THUMBNAIL_MEDIA_TYPES = frozenset({"image/png", "image/jpeg"})


@dataclass(frozen=True)
class PipelineConfig:
    """
    Read-only configuration shared by every upload run.
    Built once from Django settings and handed to each component, so runs
    never reach for global state themselves.
    """
    bucket: str
    region: str = "us-east-1"
    endpoint_url: str | None = None
    public_endpoint: str | None = None
    access_key: str | None = None
    secret_key: str | None = None

    url_mode: str = URL_MODE_SIGNED
    cdn_base_url: str | None = None
    presign_expire_seconds: int = 15 * 60

    max_upload_bytes: int = 1 << 30
    temp_dir: str | None = None

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    ffmpeg_timeout: int | None = None
    ffprobe_timeout: int | None = 60

    assets_root: Path = Path("assets")
    assets_base_url: str = "http://localhost:8091/assets"
    max_thumbnail_bytes: int = 10 << 20

    @classmethod
    def from_settings(cls, settings=None) -> "PipelineConfig":
        if settings is None:
            from django.conf import settings
        return cls(
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            public_endpoint=settings.S3_PUBLIC_ENDPOINT,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            url_mode=settings.VIDEO_URL_MODE,
            cdn_base_url=settings.VIDEO_CDN_BASE_URL,
            presign_expire_seconds=settings.S3_PRESIGN_EXPIRE_SECONDS,
            max_upload_bytes=settings.VIDEO_MAX_UPLOAD_BYTES,
            temp_dir=settings.UPLOAD_TEMP_DIR,
            ffmpeg_bin=settings.FFMPEG_BIN,
            ffprobe_bin=settings.FFPROBE_BIN,
            ffmpeg_timeout=settings.FFMPEG_TIMEOUT_SECONDS,
            ffprobe_timeout=settings.FFPROBE_TIMEOUT_SECONDS,
            assets_root=Path(settings.ASSETS_ROOT),
            assets_base_url=settings.ASSETS_BASE_URL,
            max_thumbnail_bytes=settings.THUMBNAIL_MAX_UPLOAD_BYTES,
        )
