"""
Upload-to-storage pipeline for one video:

    stage -> probe -> classify -> normalize -> upload -> commit

Each run is sequential and owns its temp files through a RunScope, so every
exit path releases what the run created. The record is committed exactly
once, after the upload succeeded.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .aspect import classify
from .config import PipelineConfig, VIDEO_MEDIA_TYPES
from .errors import NormalizeError, UnsupportedMediaType
from .faststart import Failed, FFmpegNormalizer
from .keys import derive_key
from .probe import FFprobeProber
from .s3 import S3Uploader, StorageObject
from .staging import RunScope, stage
from .utils import extension_for, parse_media_type

logger = logging.getLogger(__name__)


@dataclass
class UploadRequest:
    video_id: Any
    stream: Any
    content_type: str | None
    filename: str | None = None


class VideoUploadPipeline:
    def __init__(self, config: PipelineConfig, *, prober=None, normalizer=None, uploader=None):
        self.config = config
        self.prober = prober or FFprobeProber(config.ffprobe_bin, timeout=config.ffprobe_timeout)
        self.normalizer = normalizer or FFmpegNormalizer(config.ffmpeg_bin, timeout=config.ffmpeg_timeout)
        self.uploader = uploader or S3Uploader(config)

    @classmethod
    def from_settings(cls) -> "VideoUploadPipeline":
        return cls(PipelineConfig.from_settings())

    def run(self, request: UploadRequest, commit: Callable[[StorageObject], None]) -> StorageObject:
        """
        Store one uploaded video and hand the resulting reference to ``commit``.

        ``commit`` is only called after the object is fully uploaded. Any
        PipelineError raised along the way leaves the record untouched.
        """
        media_type = parse_media_type(request.content_type)
        if media_type not in VIDEO_MEDIA_TYPES:
            raise UnsupportedMediaType(media_type, VIDEO_MEDIA_TYPES)

        ext = extension_for(request.filename, media_type)

        with RunScope() as scope:
            staged = stage(
                request.stream,
                self.config.max_upload_bytes,
                suffix=ext,
                prefix="tubely-upload-",
                directory=self.config.temp_dir,
            )
            scope.track(staged.path)

            probe = self.prober.probe(staged.path)
            orientation = classify(probe)
            logger.info(
                "Video %s geometry %sx%s -> %s",
                request.video_id, probe.width, probe.height, orientation.value,
            )

            outcome = self.normalizer.normalize(staged.path)
            scope.track(*outcome.artifacts)
            if isinstance(outcome, Failed):
                raise NormalizeError(outcome.diagnostic)

            key = derive_key(orientation, ext)
            stored = self.uploader.upload(outcome.path, key, media_type)

            commit(stored)
            logger.info("Video %s stored as s3://%s/%s", request.video_id, stored.bucket, stored.key)
            return stored
