"""Command-line interface for finding perfect takes in a recording.

WHY: Voice actors and engineers want to run an analysis on a local file
without the browser UI, and to script it over a folder of takes.

HOW: argparse accepts an audio file, an optional script file, and the
language code. The async pipeline runs via asyncio.run(). Status lines
go to stderr; the result goes to stdout, either as a readable table or
as JSON (--json). --summarize adds the model's summary of the problem
areas. --serve starts the HTTP API instead.

RULES:
- Validates file existence and extension before any network call
- Status output goes to stderr, results to stdout
- Exit code 1 on any pipeline error, printed as "Error: [stage] message"
- Exit code 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cleantake.config import DEFAULT_LANGUAGE_CODE, SUPPORTED_AUDIO_FORMATS
from cleantake.core.analyzer import Analyzer
from cleantake.core.ir import AnalysisRequest, AnalysisResult, ErrorSummary
from cleantake.core.postprocess import finalize, find_overlaps
from cleantake.core.timeline import format_timestamp
from cleantake.errors import CleanTakeError


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _load_script(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    script_path = Path(path)
    if not script_path.is_file():
        _fail("Script file not found: {}".format(script_path))
    return script_path.read_text(encoding="utf-8")


def format_table(result: AnalysisResult) -> str:
    """Render segments as an aligned, time-ordered table."""
    if not result.segments:
        return result.message
    lines = ["  #  start      end        length   confidence"]
    for index, segment in enumerate(finalize(result.segments), start=1):
        lines.append("{:>3}  {}  {}  {:>6.2f}s  {:>10.2f}".format(
            index,
            format_timestamp(segment.start),
            format_timestamp(segment.end),
            segment.duration,
            segment.confidence,
        ))
    return "\n".join(lines)


async def _run_pipeline(args: argparse.Namespace) -> None:
    """Analyze one file and print the segments (and optional summary)."""
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
        ))

    script = _load_script(args.script)
    request = AnalysisRequest.from_bytes(
        input_path.read_bytes(), script=script, language_code=args.language
    )

    analyzer = Analyzer()
    _status("Analyzing {}{}...".format(
        input_path.name, " against script" if request.script else ""
    ))
    result = await analyzer.analyze(request)
    _status(result.message)

    summary: Optional[ErrorSummary] = None
    if result.segments:
        for first, second in find_overlaps(result.segments):
            _status("  Warning: segments overlap: {}-{} and {}-{}".format(
                format_timestamp(first.start), format_timestamp(first.end),
                format_timestamp(second.start), format_timestamp(second.end),
            ))
        if args.summarize:
            _status("Summarizing problem areas...")
            summary = await analyzer.summarize(result.segments)

    if args.json:
        payload = {
            "file": input_path.name,
            "segments": [s.to_dict() for s in finalize(result.segments)] if result.segments else [],
        }
        if summary is not None:
            payload["summary"] = summary.summary
        print(json.dumps(payload, indent=2))
    else:
        print(format_table(result))
        if summary is not None:
            print()
            print(summary.summary)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cleantake",
        description="Find perfect takes in a voice-acting recording using "
                    "speech-to-text word timings and a language model.",
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        help="Path to the audio file to analyze.",
    )
    parser.add_argument(
        "--script",
        default=None,
        help="Path to a reference script (.txt) the take should match.",
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE_CODE,
        help="BCP-47 language code of the recording (default: %(default)s).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a table.",
    )
    parser.add_argument(
        "--summarize",
        action="store_true",
        help="Also ask the model for a summary of the problem areas.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API instead of analyzing a file.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline details to stderr.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m cleantake`` and the ``cleantake`` script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.serve:
        from cleantake.server.app import run_api
        run_api()
        return

    if not args.input_file:
        parser.error("input_file is required unless --serve is given")

    try:
        asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except CleanTakeError as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
