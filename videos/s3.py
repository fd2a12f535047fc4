import logging
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import PipelineConfig, URL_MODE_SIGNED, URL_MODE_STATIC
from .errors import InvalidReference, ResolveError, UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageObject:
    """What the video record persists: never a resolved URL, which may expire."""
    bucket: str
    key: str
    content_type: str

    def to_dict(self) -> dict:
        return {"bucket": self.bucket, "key": self.key, "content_type": self.content_type}

    @classmethod
    def from_dict(cls, data) -> "StorageObject":
        if not isinstance(data, dict):
            raise InvalidReference(f"Invalid video reference: {data!r}")
        bucket, key = data.get("bucket"), data.get("key")
        if not bucket or not key:
            raise InvalidReference(f"Invalid video reference: {data!r}")
        return cls(bucket=bucket, key=key, content_type=data.get("content_type") or "video/mp4")


def _client(config: PipelineConfig, endpoint_url: str | None):
    session = boto3.session.Session(
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        region_name=config.region,
    )
    return session.client(
        "s3",
        endpoint_url=endpoint_url,
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


def get_s3_client(config: PipelineConfig):
    """
    SDK client for server-side uploads.
    """
    return _client(config, config.endpoint_url)


def get_presign_client(config: PipelineConfig):
    """
    Separate client for generating presigned URLs that the browser will call.
    Uses the public endpoint so the URL host matches what the client reaches.
    """
    return _client(config, config.public_endpoint or config.endpoint_url)


class S3Uploader:
    """
    Single PutObject per file: no multipart, no retries. Any failure is
    surfaced as UploadError straight away.
    """

    def __init__(self, config: PipelineConfig, client=None):
        self.config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client(self.config)
        return self._client

    def upload(self, path, key: str, content_type: str) -> StorageObject:
        bucket = self.config.bucket
        try:
            with open(path, "rb") as body:
                self.client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error("Upload of %s to s3://%s/%s failed: %s", path, bucket, key, e)
            raise UploadError(f"Failed to upload video to storage: {e}") from e

        logger.info("Uploaded %s to s3://%s/%s", Path(path).name, bucket, key)
        return StorageObject(bucket=bucket, key=key, content_type=content_type)


class LocatorResolver:
    """
    Turns a StorageObject into a URL a client can play.

    static: formatted from bucket/key (or the CDN base URL), no network call.
    signed: a presigned GET minted on every call, never cached.
    """

    def __init__(self, config: PipelineConfig, client=None):
        if config.url_mode not in (URL_MODE_SIGNED, URL_MODE_STATIC):
            raise ValueError(f"Unknown URL mode: {config.url_mode!r}")
        self.config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_presign_client(self.config)
        return self._client

    def resolve(self, obj: StorageObject) -> str:
        if self.config.url_mode == URL_MODE_STATIC:
            return self.object_url(obj)
        return self.presigned_get(obj)

    def object_url(self, obj: StorageObject) -> str:
        if self.config.cdn_base_url:
            return f"{self.config.cdn_base_url.rstrip('/')}/{obj.key}"
        base = self.config.public_endpoint or self.config.endpoint_url
        if base:
            return f"{base.rstrip('/')}/{obj.bucket}/{obj.key}"
        return f"https://{obj.bucket}.s3.{self.config.region}.amazonaws.com/{obj.key}"

    def presigned_get(self, obj: StorageObject) -> str:
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": obj.bucket, "Key": obj.key},
                ExpiresIn=self.config.presign_expire_seconds,
                HttpMethod="GET",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Presigning s3://%s/%s failed: %s", obj.bucket, obj.key, e)
            raise ResolveError(f"Failed to generate presigned URL: {e}") from e
