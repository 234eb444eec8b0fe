"""cleantake — find perfect takes in voice-acting recordings.

WHY: Voice actors record long takes full of stumbles, restarts, and
pauses. Picking the clean spans by ear is slow. This package transcribes
a take with word-level timings, asks a language model which spans are
fluent, coherent, and (optionally) faithful to the script, and returns
them as time-coded segments with a confidence score.

HOW: Linear pipeline — credentials (auth), speech-to-text (api.speech),
prompt rendering (core.prompt), model completion and JSON validation
(api.chat + core.extraction), orchestrated by core.analyzer. The HTTP
server and CLI are thin shells around the orchestrator.

RULES:
- No component keeps state between analyses
- Every failure is a typed CleanTakeError tagged with its pipeline stage
- An empty segment list is a result, not an error
"""

__version__ = "0.1.0"
