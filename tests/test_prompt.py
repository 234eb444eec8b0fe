"""Tests for prompt rendering."""

from __future__ import annotations

from cleantake.core.ir import TimedWord
from cleantake.core.prompt import NO_SCRIPT_INSTRUCTION, build_prompt, format_timed_words

WORDS = [TimedWord("Hello", 0.0, 0.4), TimedWord("world", 0.42, 0.81)]


class TestFormatTimedWords:

    def test_two_decimals_and_suffix(self):
        assert format_timed_words(WORDS) == "[0.00s-0.40s] Hello [0.42s-0.81s] world"

    def test_rounds_long_offsets(self):
        assert format_timed_words([TimedWord("ok", 1.005, 12.3456)]) == "[1.00s-12.35s] ok"

    def test_empty(self):
        assert format_timed_words([]) == ""


class TestBuildPrompt:

    def test_contains_annotated_transcript(self):
        prompt = build_prompt(WORDS)
        assert "[0.00s-0.40s] Hello [0.42s-0.81s] world" in prompt

    def test_without_script_uses_fluency_instruction(self):
        prompt = build_prompt(WORDS)
        assert NO_SCRIPT_INSTRUCTION in prompt
        assert "Script for comparison" not in prompt

    def test_blank_script_counts_as_absent(self):
        prompt = build_prompt(WORDS, script="   \n")
        assert NO_SCRIPT_INSTRUCTION in prompt

    def test_with_script(self):
        prompt = build_prompt(WORDS, script="Hello world\n")
        assert 'Script for comparison:\n"""\nHello world\n"""' in prompt
        assert NO_SCRIPT_INSTRUCTION not in prompt

    def test_describes_output_schema(self):
        prompt = build_prompt(WORDS)
        assert '"segments"' in prompt
        assert '"start"' in prompt
        assert '"end"' in prompt
        assert '"confidence"' in prompt
        assert '{"segments": []}' in prompt

    def test_falls_back_to_plain_transcript(self):
        prompt = build_prompt([], transcript="  hello there ")
        assert "\nhello there\n" in prompt
        assert "[0." not in prompt
