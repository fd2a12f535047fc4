import json
import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Geometry of the primary video stream. Both fields are None when unknown."""
    width: int | None = None
    height: int | None = None

    @classmethod
    def indeterminate(cls) -> "ProbeResult":
        return cls()

    @property
    def is_indeterminate(self) -> bool:
        return not self.width or not self.height


class FFprobeProber:
    """
    Reads stream geometry with ffprobe (no frame decoding).
    Never raises for a bad file: geometry only drives key prefixing, so any
    failure degrades to ProbeResult.indeterminate().
    """

    def __init__(self, ffprobe_bin: str = "ffprobe", timeout: int | None = 60):
        self.ffprobe_bin = ffprobe_bin
        self.timeout = timeout

    def probe(self, path) -> ProbeResult:
        cmd = [
            self.ffprobe_bin,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("ffprobe could not run on %s: %s", path, e)
            return ProbeResult.indeterminate()

        if proc.returncode != 0:
            logger.info("ffprobe exited %s for %s: %s", proc.returncode, path, proc.stderr.strip())
            return ProbeResult.indeterminate()

        return parse_ffprobe_output(proc.stdout)


def parse_ffprobe_output(raw: str) -> ProbeResult:
    """Pick width/height of the first video stream out of ffprobe JSON."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return ProbeResult.indeterminate()
    if not isinstance(data, dict):
        return ProbeResult.indeterminate()

    streams = [s for s in data.get("streams") or [] if isinstance(s, dict)]
    video = [s for s in streams if s.get("codec_type") == "video"]
    # Fall back to the first stream when none is tagged as video.
    candidates = video or streams
    if not candidates:
        return ProbeResult.indeterminate()

    stream = candidates[0]
    try:
        width = int(stream.get("width") or 0)
        height = int(stream.get("height") or 0)
    except (TypeError, ValueError):
        return ProbeResult.indeterminate()
    if width <= 0 or height <= 0:
        return ProbeResult.indeterminate()
    return ProbeResult(width=width, height=height)
