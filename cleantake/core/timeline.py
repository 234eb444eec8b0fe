"""Review timeline rendering and the error-summary prompt.

WHY: After analysis, the actor wants to know what went wrong outside
the clean takes, not just where the clean takes are. A short written
summary of the problem areas saves listening to the whole recording
again.

HOW: render_timeline() lists the clean segments in time order and the
gaps between them (marked for review). build_summary_prompt() wraps that
timeline in an "expert audio editor" instruction for the language model.

RULES:
- Times are rendered as mm:ss.ss
- A gap shorter than MIN_GAP_S is not listed
- With duration_s, the span after the last segment is listed too
"""

from __future__ import annotations

from collections.abc import Sequence

from cleantake.core.ir import Segment
from cleantake.core.postprocess import finalize

MIN_GAP_S = 0.05

_SUMMARY_TEMPLATE = """\
You are an expert audio editor.

You will receive an audio timeline with identified clean segments and potential errors.

Your task is to provide a concise summary of the potential errors or unwanted sections in the audio file, so the voice actor can quickly understand the areas needing attention and make informed editing decisions.

Audio Timeline:
{timeline}

Summary: """


def format_timestamp(seconds: float) -> str:
    minutes, secs = divmod(max(seconds, 0.0), 60)
    return "{:02d}:{:05.2f}".format(int(minutes), secs)


def render_timeline(segments: Sequence[Segment], duration_s: float | None = None) -> str:
    """Render clean segments and the gaps between them, one line each."""
    lines: list[str] = []
    cursor = 0.0
    for segment in finalize(segments):
        if segment.start - cursor >= MIN_GAP_S:
            lines.append("{} - {}  needs review (no clean take)".format(
                format_timestamp(cursor), format_timestamp(segment.start)))
        lines.append("{} - {}  clean take (confidence {:.2f})".format(
            format_timestamp(segment.start),
            format_timestamp(segment.end),
            segment.confidence,
        ))
        cursor = max(cursor, segment.end)
    if duration_s is not None and duration_s - cursor >= MIN_GAP_S:
        lines.append("{} - {}  needs review (no clean take)".format(
            format_timestamp(cursor), format_timestamp(duration_s)))
    return "\n".join(lines)


def build_summary_prompt(timeline: str) -> str:
    return _SUMMARY_TEMPLATE.format(timeline=timeline)
