"""Render timed transcripts into the segment-classification prompt.

WHY: The language model never hears the audio. Everything it knows
about fluency comes from the transcript and the gaps between word
timings, so the prompt has to carry those timings verbatim and spell out
the exact JSON shape we will validate afterwards.

HOW: format_timed_words() renders each word as
"[start.2fs-end.2fs] word" and joins them with spaces. build_prompt()
drops that block (or the plain transcript when there are no words) into
a fixed instruction template, adding either the script or an explicit
"no script" instruction.

RULES:
- Pure functions, no I/O
- Timings always use two decimals and an "s" suffix
- With no words, fall back to the plain transcript (degraded, not fatal)
- Without a script, the model is told to judge fluency and coherence only
"""

from __future__ import annotations

from collections.abc import Sequence

from cleantake.core.ir import TimedWord

NO_SCRIPT_INSTRUCTION = (
    "No script provided. Focus ONLY on fluency and coherence based on the transcript."
)

_PROMPT_TEMPLATE = """\
You are an AI expert specializing in analyzing voice acting recordings based on provided transcripts WITH WORD TIMINGS. Your task is to identify "perfect takes". A perfect take is a segment of speech that is:
1.  Fluent and coherent: Spoken clearly without stumbles, significant unnatural pauses (indicated by large gaps between one word's end time and the next word's start time), restarts, or filler words identifiable from the transcript.
2.  Accurate (if a script is provided): The spoken words in the transcript must closely match the provided script text for that segment.

Analyze the following transcript (with word timings). Identify all segments that qualify as perfect takes based ONLY on the criteria above (fluency, coherence, script accuracy). Assume the original audio quality was acceptable. Use the gaps between consecutive word timings to judge coherence: a long silence inside a phrase, or a phrase that is repeated after a pause, marks a restart and breaks the take.

Transcript with word timings:
\"\"\"
{transcript}
\"\"\"

{script_section}

Return the results ONLY as a single valid JSON object containing an array named "segments". Do NOT include any explanation, commentary, or text outside the JSON object block. Segments must not overlap. Each segment object in the array must include:
- "start": The start time of the perfect take in seconds (use the start time of the first word in the segment, formatted to 2 decimal places).
- "end": The end time of the perfect take in seconds (use the end time of the last word in the segment, formatted to 2 decimal places).
- "confidence": A score from 0.0 to 1.0 indicating your confidence that this segment is a perfect take according to the criteria (fluency, coherence, and script accuracy if applicable). Higher scores mean higher certainty.

Example output format:
{{
  "segments": [
    {{
      "start": 10.52,
      "end": 15.18,
      "confidence": 0.95
    }},
    {{
      "start": 25.09,
      "end": 32.75,
      "confidence": 0.98
    }}
  ]
}}

If no segment qualifies, return {{"segments": []}}.
Base the start/end times strictly on the word timings provided in the transcript. Ensure your output strictly adheres to the JSON format. Output ONLY the JSON object.
"""


def format_timed_word(word: TimedWord) -> str:
    return "[{:.2f}s-{:.2f}s] {}".format(word.start_s, word.end_s, word.text)


def format_timed_words(words: Sequence[TimedWord]) -> str:
    """Render words as "[0.00s-0.40s] Hello [0.42s-0.81s] world"."""
    return " ".join(format_timed_word(w) for w in words)


def build_prompt(
    words: Sequence[TimedWord],
    script: str | None = None,
    transcript: str = "",
) -> str:
    """Build the segment-classification prompt.

    Args:
        words: Timed words in utterance order.
        script: Optional reference script the take should match.
        transcript: Plain transcript, used only when `words` is empty.

    Returns:
        The complete prompt text.
    """
    annotated = format_timed_words(words) if words else transcript.strip()

    if script and script.strip():
        script_section = 'Script for comparison:\n"""\n{}\n"""'.format(script.strip())
    else:
        script_section = NO_SCRIPT_INSTRUCTION

    return _PROMPT_TEMPLATE.format(transcript=annotated, script_section=script_section)
