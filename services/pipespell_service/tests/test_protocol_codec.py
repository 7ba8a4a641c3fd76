"""Tests for the pipe-mode line codec."""

from __future__ import annotations

import pytest

from services.pipespell_service.exceptions import ProtocolError
from services.pipespell_service.protocol_codec import (
    decode_line,
    encode_line,
    encode_text,
    is_block_terminator,
    is_valid_banner,
)


class TestEncoding:
    """Tests for turning request text into wire lines."""

    def test_encode_line_marks_data_and_appends_single_newline(self) -> None:
        assert encode_line("helo world") == "^helo world\n"

    @pytest.mark.parametrize("line", ["*add this", "- buy milk", "# heading", "&x", "!"])
    def test_encode_line_marks_command_characters_as_data(self, line: str) -> None:
        assert encode_line(line) == f"^{line}\n"

    def test_encode_line_of_empty_line_is_bare_marker(self) -> None:
        assert encode_line("") == "^\n"

    @pytest.mark.parametrize("line", ["two\nlines", "carriage\rreturn"])
    def test_encode_line_rejects_line_breaks(self, line: str) -> None:
        with pytest.raises(ValueError):
            encode_line(line)

    def test_encode_text_splits_on_line_breaks(self) -> None:
        assert encode_text("first line\r\nsecond\nthird") == ["first line", "second", "third"]

    def test_encode_text_of_empty_text_is_empty(self) -> None:
        assert encode_text("") == []


class TestBannerAndTerminator:
    """Tests for the startup banner and reply block terminator."""

    def test_valid_banner(self) -> None:
        banner = "@(#) International Ispell Version 3.1.20 (but really Aspell 0.60.8)"
        assert is_valid_banner(banner) is True

    @pytest.mark.parametrize(
        "line",
        [None, "", "Error: No word lists can be found", "@(#) International Ispell 3.1.20"],
    )
    def test_invalid_banner(self, line: str | None) -> None:
        assert is_valid_banner(line) is False

    def test_banner_with_custom_marker_and_product(self) -> None:
        assert is_valid_banner("!! Hunspell 1.7", marker="!!", product="Hunspell") is True

    @pytest.mark.parametrize("line", ["", "   ", "\r"])
    def test_blank_lines_terminate_blocks(self, line: str) -> None:
        assert is_block_terminator(line) is True

    def test_reply_line_does_not_terminate_block(self) -> None:
        assert is_block_terminator("*") is False


class TestDecodeLine:
    """Tests for decoding individual reply lines."""

    @pytest.mark.parametrize("line", ["*", "* ", "+ HELLO", "-"])
    def test_correct_shapes_decode_as_not_misspelled(self, line: str) -> None:
        record = decode_line(line)

        assert record.is_misspelled is False
        assert record.term == ""
        assert record.candidates == []

    def test_suggestions_reply(self) -> None:
        record = decode_line("& helo 2 1: hello, help")

        assert record.is_misspelled is True
        assert record.term == "helo"
        assert record.suggestion_count == 2
        assert record.position == 1
        assert record.candidates == ["hello", "help"]

    def test_guesses_reply_decodes_like_suggestions(self) -> None:
        record = decode_line("? wrld 1 7: world")

        assert record.is_misspelled is True
        assert record.term == "wrld"
        assert record.position == 7
        assert record.candidates == ["world"]

    def test_suggestion_candidates_are_trimmed_and_blanks_dropped(self) -> None:
        record = decode_line("& teh 3 5:  the ,ten,, tech  ")

        assert record.candidates == ["the", "ten", "tech"]

    def test_count_is_taken_as_reported(self) -> None:
        record = decode_line("& teh 5 1: the")

        assert record.suggestion_count == 5
        assert record.candidates == ["the"]

    def test_no_suggestions_reply(self) -> None:
        record = decode_line("# wrld 7")

        assert record.is_misspelled is True
        assert record.term == "wrld"
        assert record.position == 7
        assert record.suggestion_count == 0
        assert record.candidates == []

    def test_no_suggestions_reply_with_count_token(self) -> None:
        record = decode_line("# wrld 0 7")

        assert record.term == "wrld"
        assert record.position == 7

    def test_trailing_carriage_return_is_ignored(self) -> None:
        record = decode_line("& helo 2 1: hello, help\r")

        assert record.candidates == ["hello", "help"]

    @pytest.mark.parametrize(
        "line",
        [
            "& helo 2: hello",
            "& helo 2 1 extra: hello",
            "& helo 2 1 hello",
            "& helo x 1: hello",
            "& helo 2 y: hello",
            "# wrld",
            "# wrld a b c",
            "# wrld seven",
        ],
    )
    def test_malformed_headers_raise_protocol_error(self, line: str) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            decode_line(line)

        assert exc_info.value.raw_line == line

    def test_truncated_header_error_names_raw_line(self) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            decode_line("& bad")

        assert "'& bad'" in exc_info.value.message
        assert exc_info.value.raw_line == "& bad"

    def test_decoding_is_deterministic(self) -> None:
        line = "& helo 2 1: hello, help"

        assert decode_line(line) == decode_line(line)

    def test_invalid_number_keeps_parse_failure_as_cause(self) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            decode_line("& helo two 1: hello")

        assert isinstance(exc_info.value.cause, ValueError)

    def test_unknown_marker_raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="not supported"):
            decode_line("Error: unexpected")

    def test_empty_line_raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            decode_line("")
