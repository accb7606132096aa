"""
Chunked vision-text synthesis.

Frames are analysed by the vision model in batches of at most
VISION_IMAGE_LIMIT images, strictly one batch at a time. Every batch yields a
BatchOutcome; a failed or empty batch never stops the rest. The successful
batch texts are then combined with the transcript in a single text-model call.

If no frames exist, or no batch succeeds, the engine falls back to a
transcript-only synthesis instead of failing the request.
"""

from __future__ import annotations

import logging
from typing import Sequence

from tqdm import tqdm

from mediasum import prompts
from mediasum.errors import EmptyTranscript, SynthesisFailed
from mediasum.llm import ModelCallError, ModelClient, SynthesisStyle
from mediasum.schema import BatchOutcome, Frame, SynthesisResult

logger = logging.getLogger(__name__)

# Hard per-call image ceiling of the vision model
VISION_IMAGE_LIMIT = 5


def partition_frames(frames: Sequence[Frame], batch_size: int) -> list[list[Frame]]:
    """
    Split frames into consecutive batches, preserving order.

    Batch ``i`` covers positions ``[i * batch_size, (i + 1) * batch_size)``.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(frames[i : i + batch_size]) for i in range(0, len(frames), batch_size)]


def format_visual_details(outcomes: Sequence[BatchOutcome]) -> list[str]:
    """Tag each successful batch text with its frame range; others are dropped."""
    return [
        prompts.VISUAL_DETAILS_ENTRY.format(frame_range=o.frame_range, text=o.text)
        for o in outcomes
        if o.succeeded
    ]


class SynthesisEngine:
    """
    Turns a transcript and sampled frames into one SynthesisResult.

    Holds only the client and batch settings; batch outcomes stay local to
    each call so one engine can serve concurrent runs.
    """

    def __init__(
        self,
        client: ModelClient,
        batch_size: int = VISION_IMAGE_LIMIT,
        progress_bar: bool | None = None,
    ):
        if batch_size <= 0 or batch_size > VISION_IMAGE_LIMIT:
            raise ValueError(f"batch_size must be between 1 and {VISION_IMAGE_LIMIT}")
        self.client = client
        self.batch_size = batch_size
        # None lets tqdm disable itself when stderr is not a TTY
        self.progress_bar = progress_bar

    def synthesize(self, transcript: str | None, frames: Sequence[Frame]) -> SynthesisResult:
        """
        Produce Markdown documentation from the transcript and frames.

        Args:
            transcript: Full transcript (required, non-blank)
            frames: Sampled frames in plan order (may be empty)

        Returns:
            SynthesisResult from the final text-model call

        Raises:
            EmptyTranscript: If the transcript is missing or blank
            SynthesisFailed: If the final call (or the transcript-only
                fallback) fails or returns nothing
        """
        if not transcript or not transcript.strip():
            raise EmptyTranscript("Transcript is required to synthesize a result")

        if not frames:
            logger.info("No frames provided, synthesizing from transcript only")
            return self.synthesize_transcript_only(transcript, style="document")

        outcomes = self.analyze_batches(transcript, frames)

        visual_details = format_visual_details(outcomes)
        if not visual_details:
            logger.warning("No details extracted from any frame batch, falling back to transcript only")
            return self.synthesize_transcript_only(transcript, style="document")

        logger.info(
            f"Synthesizing {len(visual_details)}/{len(outcomes)} visual detail sets "
            f"with transcript using {self.client.text_model}"
        )
        try:
            text = self.client.synthesize(transcript, visual_details)
        except ModelCallError as e:
            raise SynthesisFailed("Final synthesis failed", str(e)) from e

        if not text.strip():
            raise SynthesisFailed("Final synthesis returned an empty response")

        logger.info("Final synthesis successful")
        return SynthesisResult(text=text.strip(), model=self.client.text_model)

    def analyze_batches(self, transcript: str, frames: Sequence[Frame]) -> list[BatchOutcome]:
        """
        Run the vision model over every batch, one at a time.

        Returns:
            One BatchOutcome per batch, in batch order
        """
        batches = partition_frames(frames, self.batch_size)
        total = len(batches)
        logger.info(
            f"Analyzing {len(frames)} frames in {total} batch(es) of up to "
            f"{self.batch_size} using {self.client.vision_model}"
        )

        outcomes: list[BatchOutcome] = []
        for part, batch in enumerate(
            tqdm(batches, desc="Frame batches", unit="batch", disable=self._tqdm_disable()),
            start=1,
        ):
            outcome = self._analyze_batch(transcript, batch, part, total)
            outcomes.append(outcome)

        succeeded = sum(1 for o in outcomes if o.succeeded)
        logger.info(f"Frame analysis complete: {succeeded}/{total} batches succeeded")
        return outcomes

    def _analyze_batch(self, transcript: str, batch: Sequence[Frame], part: int, total: int) -> BatchOutcome:
        start_index = batch[0].index
        end_index = batch[-1].index
        placeholder = BatchOutcome.empty(start_index, end_index)
        instructions = prompts.BATCH_INSTRUCTIONS.format(
            part=part,
            total=total,
            count=len(batch),
            frame_range=placeholder.frame_range,
        )

        try:
            text = self.client.analyze_batch(
                transcript,
                [frame.image_bytes for frame in batch],
                instructions,
            )
        except ModelCallError as e:
            logger.error(f"Batch {part}/{total} ({placeholder.frame_range}) failed: {e}")
            return BatchOutcome.error(start_index, end_index, str(e) or type(e).__name__)

        if not text or not text.strip():
            logger.warning(f"Batch {part}/{total} ({placeholder.frame_range}) returned no details")
            return placeholder

        logger.debug(f"Batch {part}/{total} ({placeholder.frame_range}) extracted {len(text)} chars")
        return BatchOutcome.success(start_index, end_index, text.strip())

    def synthesize_transcript_only(
        self,
        transcript: str | None,
        style: SynthesisStyle = "summary",
    ) -> SynthesisResult:
        """
        Produce a result from the transcript alone.

        Args:
            transcript: Full transcript (required, non-blank)
            style: "summary" for a short prose summary, "document" for
                Markdown documentation

        Raises:
            EmptyTranscript: If the transcript is missing or blank
            SynthesisFailed: If the call fails or returns nothing
        """
        if not transcript or not transcript.strip():
            raise EmptyTranscript("Transcript is required to synthesize a result")

        logger.info(f"Generating {style} from transcript only using {self.client.text_model}")
        try:
            text = self.client.synthesize(transcript, None, style=style)
        except ModelCallError as e:
            raise SynthesisFailed("Transcript-only synthesis failed", str(e)) from e

        if not text.strip():
            raise SynthesisFailed("Transcript-only synthesis returned an empty response")

        return SynthesisResult(text=text.strip(), model=self.client.text_model)

    def _tqdm_disable(self) -> bool | None:
        if self.progress_bar is None:
            return None
        return not self.progress_bar
