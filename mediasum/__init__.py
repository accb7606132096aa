"""
mediasum - Media Summarization Pipeline

Turns an uploaded audio or video file into a summary (audio) or Markdown
documentation (video) by combining a speech transcript with sampled frames
analysed by a vision-capable model.

Modules:
    - schema: Pydantic models for all data structures
    - errors: Pipeline error taxonomy
    - io: Path helpers and per-run artifact layout
    - artifacts: Temporary artifact registry with guaranteed cleanup
    - sampling: Frame sampling planner
    - ffmpeg_utils: Duration probing and audio extraction via ffmpeg
    - frames: Frame extraction at planned timestamps
    - transcribe: Speech-to-text (hosted Whisper API or faster-whisper)
    - prompts: Prompt templates for vision and text models
    - llm: OpenAI-compatible vision/text model client
    - synthesis: Chunked vision-text synthesis engine
    - pipeline: End-to-end orchestrator
    - config: YAML configuration loading
    - cli: Command-line interface
    - serve: HTTP upload endpoint
"""

__version__ = "0.1.0"
