"""
Pydantic v2 models for all pipeline data structures.

Every model is frozen: plans, frames, batch outcomes and results are created
once during a run and never mutated afterwards.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PlanKind = Literal["empty", "single_midpoint", "regular"]
BatchStatus = Literal["success", "empty", "error"]


class SamplingPolicy(BaseModel):
    """How densely frames are sampled from a video."""

    model_config = ConfigDict(strict=True, frozen=True)

    interval_seconds: float = Field(default=10.0, gt=0, description="Seconds between frames")
    max_frames: int = Field(default=30, gt=0, description="Upper bound on sampled frames")


class SamplingPlan(BaseModel):
    """Ordered extraction timestamps for one video."""

    model_config = ConfigDict(strict=True, frozen=True)

    timestamps: list[float] = Field(default_factory=list, description="Timestamps in seconds")
    kind: PlanKind = Field(default="empty", description="How the plan was derived")

    @field_validator("timestamps")
    @classmethod
    def strictly_increasing(cls, v: list[float]) -> list[float]:
        """Ensure timestamps are non-negative and strictly increasing."""
        for prev, cur in zip(v, v[1:]):
            if cur <= prev:
                raise ValueError("timestamps must be strictly increasing")
        if v and v[0] < 0:
            raise ValueError("timestamps must be >= 0")
        return v

    @model_validator(mode="after")
    def kind_matches_timestamps(self) -> SamplingPlan:
        """An empty plan has no timestamps; a midpoint plan has exactly one."""
        if (self.kind == "empty") != (len(self.timestamps) == 0):
            raise ValueError("kind 'empty' must be used exactly when there are no timestamps")
        if self.kind == "single_midpoint" and len(self.timestamps) != 1:
            raise ValueError("single_midpoint plan must hold exactly one timestamp")
        return self

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def is_empty(self) -> bool:
        return self.kind == "empty"

    @classmethod
    def empty(cls) -> SamplingPlan:
        return cls(timestamps=[], kind="empty")


class Frame(BaseModel):
    """A sampled still image held in memory for model calls."""

    model_config = ConfigDict(strict=True, frozen=True)

    index: int = Field(..., ge=1, description="1-based position in the sampling plan")
    image_bytes: bytes = Field(..., repr=False, description="Encoded JPEG payload")
    timestamp: float = Field(..., ge=0, description="Source timestamp in seconds")
    path: str | None = Field(default=None, description="Temporary file the frame was read from")
    width: int | None = Field(default=None, ge=1, description="Frame width in pixels")
    height: int | None = Field(default=None, ge=1, description="Frame height in pixels")


class BatchOutcome(BaseModel):
    """Result of analysing one batch of frames with the vision model."""

    model_config = ConfigDict(strict=True, frozen=True)

    status: BatchStatus = Field(..., description="success, empty or error")
    start_index: int = Field(..., ge=1, description="First frame index (1-based, inclusive)")
    end_index: int = Field(..., ge=1, description="Last frame index (1-based, inclusive)")
    text: str | None = Field(default=None, description="Extracted details on success")
    message: str | None = Field(default=None, description="Failure detail on error")

    @field_validator("end_index")
    @classmethod
    def end_after_start(cls, v: int, info: Any) -> int:
        """Ensure end index is not before start index."""
        if "start_index" in info.data and v < info.data["start_index"]:
            raise ValueError("end_index must be >= start_index")
        return v

    @model_validator(mode="after")
    def payload_matches_status(self) -> BatchOutcome:
        if self.status == "success" and not (self.text and self.text.strip()):
            raise ValueError("success outcome requires non-empty text")
        if self.status == "error" and not self.message:
            raise ValueError("error outcome requires a message")
        return self

    @classmethod
    def success(cls, start_index: int, end_index: int, text: str) -> BatchOutcome:
        return cls(status="success", start_index=start_index, end_index=end_index, text=text)

    @classmethod
    def empty(cls, start_index: int, end_index: int) -> BatchOutcome:
        return cls(status="empty", start_index=start_index, end_index=end_index)

    @classmethod
    def error(cls, start_index: int, end_index: int, message: str) -> BatchOutcome:
        return cls(status="error", start_index=start_index, end_index=end_index, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def frame_range(self) -> str:
        """Human-readable range label, e.g. 'Frames 1-5'."""
        return f"Frames {self.start_index}-{self.end_index}"


class SynthesisResult(BaseModel):
    """Final text produced for one run."""

    model_config = ConfigDict(strict=True, frozen=True)

    text: str = Field(..., min_length=1, description="Summary or Markdown document")
    model: str = Field(..., description="Model that produced the final text")

    def to_response(self) -> dict[str, str]:
        """Render in the shape returned by the HTTP endpoint."""
        return {"summary": self.text, "modelUsed": self.model}


class MediaMeta(BaseModel):
    """Metadata about a media file, as reported by ffprobe."""

    model_config = ConfigDict(strict=True)

    duration: float | None = Field(default=None, ge=0, description="Duration in seconds")
    width: int | None = Field(default=None, ge=1, description="Video width")
    height: int | None = Field(default=None, ge=1, description="Video height")
    fps: float | None = Field(default=None, gt=0, description="Frames per second")
    has_video: bool = Field(default=False, description="Whether a video stream exists")
    has_audio: bool = Field(default=False, description="Whether an audio stream exists")
