"""Tests for section parsing and extraction chains."""

from promptlab.parsing import (
    first_present,
    last_paragraph,
    paragraphs,
    parse_generic_section,
    parse_section,
    regex_group,
    section,
    whole_text,
)


class TestParseSection:
    def test_returns_body_up_to_next_known_header(self):
        text = "INITIAL_ATTEMPT:\nfirst try\n\nREFLECTION_1:\nmissed a case\nFINAL_ANSWER:\n42"

        assert parse_section(text, "INITIAL_ATTEMPT") == "first try"
        assert parse_section(text, "REFLECTION_1") == "missed a case"
        assert parse_section(text, "FINAL_ANSWER") == "42"

    def test_header_on_same_line(self):
        assert parse_section("REASONING: stuff\nFINAL_ANSWER: 7", "FINAL_ANSWER") == "7"

    def test_header_is_case_insensitive(self):
        assert parse_section("final_answer: yes", "FINAL_ANSWER") == "yes"

    def test_missing_header_returns_none(self):
        assert parse_section("no headers here", "FINAL_ANSWER") is None

    def test_empty_input_returns_none(self):
        assert parse_section("", "FINAL_ANSWER") is None
        assert parse_section(None, "FINAL_ANSWER") is None

    def test_empty_body_returns_none(self):
        assert parse_section("FINAL_ANSWER:   ", "FINAL_ANSWER") is None

    def test_reasoning_stops_at_final_answer(self):
        text = "REASONING:\n1. a\n2. b\nFINAL_ANSWER: c"
        assert parse_section(text, "REASONING") == "1. a\n2. b"

    def test_header_inside_word_is_ignored(self):
        assert parse_section("MY_FINAL_ANSWER: no", "FINAL_ANSWER") is None


class TestGenericSection:
    def test_stops_at_any_upper_case_header(self):
        text = "PYTHON_CODE:\nx = 1\nNOTES: ignore"
        assert parse_generic_section(text, "PYTHON_CODE") == "x = 1"

    def test_lower_case_label_does_not_terminate(self):
        text = "SUMMARY: one\nnote: still summary"
        assert parse_generic_section(text, "SUMMARY") == "one\nnote: still summary"


class TestExtractionChains:
    def test_first_present_returns_first_hit(self):
        chain = (section("FINAL_ANSWER"), last_paragraph)
        assert first_present("para one\n\nFINAL_ANSWER: x", chain) == "x"

    def test_first_present_falls_through(self):
        chain = (section("FINAL_ANSWER"), last_paragraph)
        assert first_present("para one\n\npara two", chain) == "para two"

    def test_first_present_none_when_all_miss(self):
        assert first_present("   ", (section("FINAL_ANSWER"), whole_text)) is None

    def test_regex_group_trims(self):
        extractor = regex_group(r"Answer:\s*(.*)")
        assert extractor("Answer:   yes  ") == "yes"
        assert extractor("nothing") is None

    def test_paragraphs_drop_blank_blocks(self):
        assert paragraphs("a\n\n  \n\nb\n") == ["a", "b"]
