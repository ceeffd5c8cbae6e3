# gloss_annote/timeutils.py
from __future__ import annotations

import math


# -----------------------------
# Time formatting / conversion
# -----------------------------

def ms_to_time_str(ms: int) -> str:
    if ms is None:
        ms = 0
    ms = max(0, int(ms))
    s = ms // 1000
    m = s // 60
    s = s % 60
    return f"{m:02d}:{s:02d}"


def seconds_to_ms(sec: float) -> int:
    if sec is None or math.isnan(float(sec)):
        return 0
    return int(round(float(sec) * 1000.0))


def ms_to_seconds(ms: int) -> float:
    if ms is None:
        return 0.0
    return float(ms) / 1000.0


def seconds_to_time_str(sec: float) -> str:
    return ms_to_time_str(seconds_to_ms(sec))


def format_seconds(sec: float) -> str:
    """Three-decimal seconds for annotation listings ("1.250"). NaN/negative -> "0.000"."""
    if sec is None:
        return "0.000"
    sec = float(sec)
    if math.isnan(sec) or sec < 0:
        return "0.000"
    return f"{sec:.3f}"


# -----------------------------
# Timeline layout
# -----------------------------

# Above this many segments the timeline stops fitting the container and scrolls.
SCROLL_LAYOUT_THRESHOLD = 20
# Width of one segment in the scrolling layout.
MIN_SEGMENT_WIDTH_PX = 60
# Above this many segments labels are drawn with a smaller font.
SMALL_FONT_THRESHOLD = 25


def is_scroll_layout(segment_count: int) -> bool:
    return int(segment_count) > SCROLL_LAYOUT_THRESHOLD


def timeline_content_width(segment_count: int, viewport_width: int) -> int:
    """
    Pixel width of the timeline content.

    Few segments: the container's width. Many segments: a fixed
    MIN_SEGMENT_WIDTH_PX per segment, independent of the container
    (the view scrolls horizontally).
    """
    if is_scroll_layout(segment_count):
        return int(segment_count) * MIN_SEGMENT_WIDTH_PX
    return max(1, int(viewport_width))


def pixels_per_second(content_width: int, duration: float) -> float:
    if duration is None or duration <= 0:
        return 0.0
    return float(content_width) / float(duration)


def time_to_x(t: float, content_width: int, duration: float) -> float:
    pps = pixels_per_second(content_width, duration)
    return float(t) * pps


def x_to_time(x: float, content_width: int, duration: float) -> float:
    """Inverse of time_to_x, clamped to [0, duration]."""
    pps = pixels_per_second(content_width, duration)
    if pps <= 0:
        return 0.0
    t = float(x) / pps
    return max(0.0, min(t, float(duration)))
