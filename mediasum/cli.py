"""
Command-line interface.

Usage:
    mediasum summarize demo.mp4 -o demo.md
    mediasum summarize talk.m4a --media-type audio/mp4 --retries 2
    mediasum plan --duration 180 --interval 10 --max-frames 30
"""

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from mediasum import sampling
from mediasum.config import load_config, sampling_policy_from_config
from mediasum.errors import PipelineError, UnsupportedMediaType
from mediasum.ffmpeg_utils import check_ffmpeg
from mediasum.schema import SamplingPolicy, SynthesisResult

logger = logging.getLogger(__name__)


def guess_media_type(path: Path) -> str | None:
    """Guess a MIME type from the file extension."""
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type


def resolve_policy(config: dict[str, Any], args: argparse.Namespace) -> SamplingPolicy:
    """Sampling policy from config, with CLI flags taking precedence."""
    policy = sampling_policy_from_config(config)
    return SamplingPolicy(
        interval_seconds=float(args.interval) if args.interval is not None else policy.interval_seconds,
        max_frames=int(args.max_frames) if args.max_frames is not None else policy.max_frames,
    )


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, PipelineError) and exc.retryable


def run_with_retries(pipeline: Any, source: Path, media_type: str, policy: SamplingPolicy, retries: int) -> SynthesisResult:
    """
    Run the pipeline, retrying retryable failures up to ``retries`` times.

    The source file is always kept so a retry can start over from it.
    """
    retryer = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retryer(pipeline.run, source, media_type, policy, keep_source=True)


def cmd_summarize(args: argparse.Namespace) -> int:
    from mediasum.pipeline import build_pipeline

    source = Path(args.file)
    if not source.is_file():
        logger.error(f"File not found: {source}")
        return 1

    media_type = args.media_type or guess_media_type(source)
    config = load_config(args.config)
    try:
        policy = resolve_policy(config, args)
    except ValueError as e:
        logger.error(f"Invalid sampling settings: {e}")
        return 1

    ffmpeg_path = config.get("ffmpeg", {}).get("path", "ffmpeg")
    if (media_type or "").lower().startswith("video/") and not check_ffmpeg(ffmpeg_path):
        logger.error(f"ffmpeg not found or not working: {ffmpeg_path}")
        return 1

    try:
        pipeline = build_pipeline(config)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        result = run_with_retries(pipeline, source, media_type, policy, args.retries)
    except UnsupportedMediaType as e:
        logger.error(str(e))
        return 2
    except PipelineError as e:
        logger.error(f"Pipeline failed [{e.code}]: {e}")
        return 1

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.text + "\n", encoding="utf-8")
        logger.info(f"Wrote result to: {output}")
    else:
        print(result.text)

    logger.info(f"Model used: {result.model}")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    try:
        policy = resolve_policy(config, args)
    except ValueError as e:
        logger.error(f"Invalid sampling settings: {e}")
        return 1
    frame_plan = sampling.plan(args.duration, policy)
    print(json.dumps(frame_plan.model_dump(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediasum",
        description="Summarize audio or document video files with vision and text models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_policy_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("--interval", type=float, help="Seconds between sampled frames")
        p.add_argument("--max-frames", type=int, help="Maximum number of sampled frames")

    summarize = sub.add_parser("summarize", help="Process one audio or video file")
    summarize.add_argument("file", type=Path, help="Audio or video file")
    summarize.add_argument("--media-type", help="MIME type (guessed from extension if omitted)")
    summarize.add_argument("-o", "--output", type=Path, help="Write the result to this file")
    summarize.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Retry retryable failures this many times",
    )
    add_policy_flags(summarize)
    summarize.set_defaults(func=cmd_summarize)

    plan_cmd = sub.add_parser("plan", help="Show the frame sampling plan for a duration")
    plan_cmd.add_argument("--duration", type=float, required=True, help="Media duration in seconds")
    add_policy_flags(plan_cmd)
    plan_cmd.set_defaults(func=cmd_plan)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
