"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from videos.config import PipelineConfig, URL_MODE_STATIC
from videos.faststart import Failed, Reencoded, Remuxed, REENCODE_SUFFIX, REMUX_SUFFIX
from videos.probe import ProbeResult


class FakeProber:
    def __init__(self, result: ProbeResult | None = None):
        self.result = result or ProbeResult.indeterminate()
        self.calls = []

    def probe(self, path):
        self.calls.append(Path(path))
        return self.result


class FakeNormalizer:
    """Mimics FFmpegNormalizer's file layout without running ffmpeg."""

    def __init__(self, mode: str = "remux"):
        self.mode = mode
        self.calls = []

    def normalize(self, path):
        src = Path(path)
        self.calls.append(src)
        remux = src.with_name(src.name + REMUX_SUFFIX)
        reencode = src.with_name(src.name + REENCODE_SUFFIX)

        if self.mode == "remux":
            remux.write_bytes(b"remuxed:" + src.read_bytes())
            return Remuxed(path=remux, artifacts=(remux,))

        # A failed remux can leave a truncated file behind.
        remux.write_bytes(b"partial")
        if self.mode == "reencode":
            reencode.write_bytes(b"reencoded:" + src.read_bytes())
            return Reencoded(path=reencode, artifacts=(remux, reencode))
        return Failed(diagnostic="Invalid data found when processing input", artifacts=(remux, reencode))


class FakeS3:
    """Records put_object calls; optionally fails after reading part of the body."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType):
        data = Body.read()
        if self.fail:
            raise ClientError(
                {"Error": {"Code": "RequestTimeout", "Message": "connection reset mid-transfer"}},
                "PutObject",
            )
        self.objects[(Bucket, Key)] = {"data": data, "content_type": ContentType}
        return {"ETag": '"abc"'}


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    d = tmp_path / "staging"
    d.mkdir()
    return d


@pytest.fixture
def config(tmp_path, temp_dir) -> PipelineConfig:
    return PipelineConfig(
        bucket="test-bucket",
        region="us-east-1",
        endpoint_url="http://127.0.0.1:9000",
        public_endpoint="http://media.local:9000",
        access_key="AKIDEXAMPLE",
        secret_key="wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY",
        temp_dir=str(temp_dir),
        assets_root=tmp_path / "assets",
        assets_base_url="http://localhost:8091/assets",
    )


@pytest.fixture
def static_config(config) -> PipelineConfig:
    from dataclasses import replace

    return replace(config, url_mode=URL_MODE_STATIC)


@pytest.fixture
def fake_s3() -> FakeS3:
    return FakeS3()
