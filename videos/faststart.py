"""
Rewrite an MP4 so the moov atom precedes the media data.

Two attempts, in order:

1. remux: copy the first video stream and any audio stream into a new
   container with ``-movflags faststart``. Lossless and quick, but ffmpeg
   refuses some inputs (e.g. data/timecode streams it cannot copy into MP4).
2. re-encode: libx264 at a fixed CRF with square pixels, audio copied.

The result is a tagged outcome rather than an exception so that the caller
sees every file an attempt may have left behind, whichever way it went.
"""
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

REMUX_SUFFIX = ".faststart.mp4"
REENCODE_SUFFIX = ".reencode.mp4"

# Only the tail of ffmpeg stderr is kept as the diagnostic.
MAX_DIAGNOSTIC_CHARS = 4000


@dataclass(frozen=True)
class Remuxed:
    path: Path
    artifacts: tuple


@dataclass(frozen=True)
class Reencoded:
    path: Path
    artifacts: tuple


@dataclass(frozen=True)
class Failed:
    diagnostic: str
    artifacts: tuple


def remux_command(ffmpeg_bin: str, src: Path, dst: Path) -> list[str]:
    return [
        ffmpeg_bin,
        "-nostdin",
        "-y",
        "-i", str(src),
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-c", "copy",
        "-movflags", "faststart",
        str(dst),
    ]


def reencode_command(ffmpeg_bin: str, src: Path, dst: Path) -> list[str]:
    return [
        ffmpeg_bin,
        "-nostdin",
        "-y",
        "-i", str(src),
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-vf", "setsar=1",
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-crf", "18",
        "-c:a", "copy",
        "-movflags", "faststart",
        str(dst),
    ]


class FFmpegNormalizer:
    def __init__(self, ffmpeg_bin: str = "ffmpeg", timeout: int | None = None):
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout = timeout

    def _run(self, cmd: list[str], dst: Path) -> str | None:
        """Run one ffmpeg attempt. Returns None on success, else the diagnostic text."""
        try:
            proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            return f"ffmpeg timed out after {self.timeout}s"
        except OSError as e:
            return f"ffmpeg could not be started: {e}"

        if proc.returncode != 0:
            err = proc.stderr.decode("utf-8", errors="ignore") if proc.stderr else ""
            return (err.strip() or f"ffmpeg exited with status {proc.returncode}")[-MAX_DIAGNOSTIC_CHARS:]
        if not dst.exists():
            return f"ffmpeg reported success but wrote no output to {dst}"
        return None

    def normalize(self, path):
        src = Path(path)
        remux_path = src.with_name(src.name + REMUX_SUFFIX)
        reencode_path = src.with_name(src.name + REENCODE_SUFFIX)

        err = self._run(remux_command(self.ffmpeg_bin, src, remux_path), remux_path)
        if err is None:
            logger.info("Remuxed %s for fast start", src)
            return Remuxed(path=remux_path, artifacts=(remux_path,))

        logger.warning("ffmpeg remux failed for %s, retrying with re-encode: %s", src, err)

        err = self._run(reencode_command(self.ffmpeg_bin, src, reencode_path), reencode_path)
        if err is None:
            logger.info("Re-encoded %s for fast start", src)
            return Reencoded(path=reencode_path, artifacts=(remux_path, reencode_path))

        logger.error("ffmpeg re-encode failed for %s: %s", src, err)
        return Failed(diagnostic=err, artifacts=(remux_path, reencode_path))
