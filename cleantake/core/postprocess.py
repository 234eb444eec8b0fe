"""Ordering and inspection of validated segments before cutting.

WHY: The model returns segments in whatever order it likes and can
ignore the "no overlap" instruction. The cutting stage needs them in
time order, and the reviewer needs to see overlaps rather than have
them silently merged away.

HOW: finalize() is a stable sort by (start, end). find_overlaps()
reports neighbouring pairs that overlap after sorting.
crop_and_combine() is the contract point for the future cutting stage
and currently always raises NotImplementedStageError.

RULES:
- finalize([]) raises EmptyInputError
- No de-duplication and no merging; overlaps pass through untouched
- finalize is idempotent
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cleantake.core.ir import Segment
from cleantake.errors import EmptyInputError, InvalidInputError, NotImplementedStageError

logger = logging.getLogger(__name__)


def finalize(segments: Sequence[Segment]) -> list[Segment]:
    """Return the segments sorted by ascending start, ties by ascending end."""
    if not segments:
        raise EmptyInputError("Cannot finalize: no clean segments provided.")
    return sorted(segments, key=lambda s: (s.start, s.end))


def find_overlaps(segments: Sequence[Segment]) -> list[tuple[Segment, Segment]]:
    """Return every pair of overlapping segments, in time order.

    Touching segments (one ends exactly where the next starts) do not
    count as overlapping.
    """
    ordered = sorted(segments, key=lambda s: (s.start, s.end))
    overlaps: list[tuple[Segment, Segment]] = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if second.start >= first.end:
                break
            overlaps.append((first, second))
    if overlaps:
        logger.warning("%d overlapping segment pair(s) left for review.", len(overlaps))
    return overlaps


def crop_and_combine(audio: bytes, segments: Sequence[Segment]) -> bytes:
    """Cut the segments out of the recording and join them.

    Not implemented yet: whether cuts must be sample-accurate or may snap
    to codec frames is still undecided.
    """
    if not segments:
        raise EmptyInputError("Cannot process audio: no clean segments provided.")
    if not audio:
        raise InvalidInputError(
            "Audio data must be provided for processing.",
        )
    logger.error("Audio segment processing (cropping and stitching) is not implemented yet.")
    raise NotImplementedStageError("Audio segment processing not implemented yet.")
