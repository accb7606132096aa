"""Prompt templates for the vision and text models."""

BATCH_SYSTEM = (
    "You are an assistant that extracts technical details (code, commands, filenames, "
    "UI elements, configuration values) visible in video frames, "
    "using the transcript only for context."
)

BATCH_INSTRUCTIONS = """This is part {part} of {total} of the visual frames sampled from a demonstration video. \
Use the full transcript ONLY for context. Extract the specific details visible in the following \
{count} frame(s) ({frame_range}). List any:
1. Complete commands shown in terminals.
2. Readable code snippets, as accurately as possible.
3. Filenames shown.
4. UI elements that are clicked or configured.
5. Configuration values displayed.
Report ONLY what is visible in these frames. Do not add conversational text or summaries."""

BATCH_USER = """{instructions}

Full Transcript (for context only):
'''
{transcript}
'''"""

DOCUMENT_SYSTEM = (
    "You are a technical writer creating professional, developer-grade documentation "
    "from a video transcript and details extracted from its frames."
)

DOCUMENT_USER = """Write a clear, complete Markdown document in the style of official SDK documentation, \
based on the transcript and the visual details extracted from the video frames below.

Guidelines:
- Start immediately with Markdown content, with no preamble.
- Organise content with headings; use numbered steps for sequences and bullet lists elsewhere.
- Format filenames, commands and paths as inline code, and snippets as fenced code blocks with a language.
- Use the usual sections where they apply: Introduction, Prerequisites, Installation, Configuration, \
Usage, Examples, Best Practices, Troubleshooting.
- Prefer the extracted visual details when they are more precise than the transcript.
- Mark inferred steps clearly as notes or assumptions.
- Keep the tone neutral and instructional, in active voice.

Full Audio Transcript:
'''
{transcript}
'''

Extracted Visual Details from Frame Segments:
'''
{visual_details}
'''

Generate the complete Markdown documentation below:"""

DOCUMENT_TEXT_ONLY_SYSTEM = (
    "You are a technical writer creating Markdown documentation from an audio transcript."
)

DOCUMENT_TEXT_ONLY_USER = """Generate Markdown documentation for the product demonstrated in a video, \
based ONLY on the audio transcript below. Structure it logically (Introduction, Setup, Usage, ...) \
with headings, lists and code blocks where appropriate, and extract the commands and steps mentioned.

Transcript:
'''
{transcript}
'''

Generate the complete Markdown documentation below:"""

SUMMARY_SYSTEM = "You are an expert at summarizing audio transcripts concisely."

SUMMARY_USER = """Please provide a concise summary of the following transcript:

{transcript}"""

# Heading placed before each successful batch in the final synthesis prompt
VISUAL_DETAILS_ENTRY = """Details Extracted from {frame_range}:
{text}
---"""
