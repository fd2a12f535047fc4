from enum import Enum

from .probe import ProbeResult


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


# Open intervals with slack around 16:9 (1.777..) and 9:16 (0.5625).
LANDSCAPE_RANGE = (1.7, 1.8)
PORTRAIT_RANGE = (0.55, 0.6)


def classify(probe: ProbeResult) -> Orientation:
    if probe.is_indeterminate:
        return Orientation.OTHER

    ratio = probe.width / probe.height
    if LANDSCAPE_RANGE[0] < ratio < LANDSCAPE_RANGE[1]:
        return Orientation.LANDSCAPE
    if PORTRAIT_RANGE[0] < ratio < PORTRAIT_RANGE[1]:
        return Orientation.PORTRAIT
    return Orientation.OTHER
