"""
Frame sampling planner.

Decides which timestamps to grab from a video given its duration and a
sampling policy. Any non-trivial video yields at least one frame, and a plan
never exceeds ``policy.max_frames``.
"""

from __future__ import annotations

import logging
import math

from mediasum.schema import SamplingPlan, SamplingPolicy

logger = logging.getLogger(__name__)

# Durations at or below this are treated as having no usable picture
MIN_DURATION_SECONDS = 0.1

# Candidates may overshoot the reported duration by this much and still be kept
END_TOLERANCE_SECONDS = 0.5


def plan(duration_seconds: float | None, policy: SamplingPolicy) -> SamplingPlan:
    """
    Compute the frame extraction plan for a video.

    Args:
        duration_seconds: Media duration, or None when it could not be probed
        policy: Sampling interval and frame cap

    Returns:
        SamplingPlan with kind "empty", "single_midpoint" or "regular"
    """
    if duration_seconds is None or not math.isfinite(duration_seconds) or duration_seconds <= 0:
        logger.info("Duration unknown or non-positive, no frames planned")
        return SamplingPlan.empty()

    duration = float(duration_seconds)
    interval = float(policy.interval_seconds)

    raw_count = math.floor(duration / interval)
    if raw_count <= 0:
        raw_count = 1 if duration > MIN_DURATION_SECONDS else 0

    capped_count = min(raw_count, policy.max_frames)
    if capped_count <= 0:
        logger.info(f"Duration {duration:.2f}s too short for sampling, no frames planned")
        return SamplingPlan.empty()

    timestamps: list[float] = []
    for i in range(1, capped_count + 1):
        t = i * interval
        if t > duration + END_TOLERANCE_SECONDS:
            break
        timestamps.append(min(t, duration))

    if not timestamps and duration > MIN_DURATION_SECONDS:
        midpoint = max(MIN_DURATION_SECONDS, duration / 2)
        logger.info(
            f"Duration {duration:.1f}s shorter than interval {interval}s, "
            f"sampling single frame at {midpoint:.1f}s"
        )
        return SamplingPlan(timestamps=[midpoint], kind="single_midpoint")

    if not timestamps:
        return SamplingPlan.empty()

    logger.info(
        f"Duration {duration:.1f}s: calculated {raw_count} frames, "
        f"limited to {policy.max_frames}, planned {len(timestamps)}"
    )
    return SamplingPlan(timestamps=timestamps, kind="regular")
