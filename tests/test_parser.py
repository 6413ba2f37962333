"""Tests for flag normalization and curl command interpretation."""

import base64

import pytest

from curl_relay.parser import (
    ParserState,
    RequestDescriptor,
    basic_auth,
    interpret,
    is_url,
    load_command_file,
    normalize_flags,
    parse_command,
    parse_header,
    step,
)
from curl_relay.tokenizer import MalformedQuoting


class TestNormalizeFlags:
    """Tests for normalize_flags function."""

    def test_splits_fused_method_flag(self):
        assert normalize_flags(["-XPUT", "x"]) == ["-X", "PUT", "x"]

    def test_bare_flag_unchanged(self):
        assert normalize_flags(["-X", "PUT"]) == ["-X", "PUT"]

    def test_other_tokens_unchanged(self):
        tokens = ["-H", "Accept: */*", "--request", "https://x"]
        assert normalize_flags(tokens) == tokens

    def test_idempotent(self):
        once = normalize_flags(["-XDELETE", "-X", "GET", "-XPOST"])
        assert normalize_flags(once) == once

    def test_does_not_mutate_input(self):
        tokens = ["-XPUT"]
        normalize_flags(tokens)
        assert tokens == ["-XPUT"]


class TestIsUrl:
    """Tests for URL detection."""

    @pytest.mark.parametrize(
        "token",
        ["http://a", "https://a.b/c?d=1", "ftp://files", "file:///etc/hosts"],
    )
    def test_recognized_schemes(self, token):
        assert is_url(token) is True

    @pytest.mark.parametrize(
        "token", ["example.com", "ws://a", "-H", "Referer: https://a", ""]
    )
    def test_not_urls(self, token):
        assert is_url(token) is False


class TestParseHeader:
    """Tests for header field splitting."""

    def test_simple_header(self):
        assert parse_header("Accept: text/html") == ("Accept", "text/html")

    def test_value_containing_separator(self):
        assert parse_header("X-Note: a: b") == ("X-Note", "a: b")

    def test_no_separator_is_dropped(self):
        assert parse_header("Accept:text/html") is None

    def test_empty_value_is_dropped(self):
        assert parse_header("Accept: ") is None

    def test_value_starting_with_newline_is_dropped(self):
        assert parse_header("A: \nb") is None

    def test_value_stops_at_newline(self):
        assert parse_header("A: b\nc") == ("A", "b")


class TestStep:
    """Tests for single interpreter transitions."""

    def test_value_flag_sets_state(self):
        request = RequestDescriptor()
        assert step(ParserState.NONE, request, "-H") is ParserState.EXPECT_HEADER

    def test_value_resets_state(self):
        request = RequestDescriptor()
        state = step(ParserState.EXPECT_METHOD, request, "PATCH")
        assert state is ParserState.NONE
        assert request.method == "PATCH"

    def test_url_keeps_pending_state(self):
        request = RequestDescriptor()
        state = step(ParserState.EXPECT_HEADER, request, "https://x")
        assert state is ParserState.EXPECT_HEADER
        assert request.url == "https://x"
        assert request.headers == {}

    def test_empty_token_ignored(self):
        request = RequestDescriptor()
        state = step(ParserState.EXPECT_DATA, request, "")
        assert state is ParserState.EXPECT_DATA
        assert request.body is None

    def test_plain_value_without_state_ignored(self):
        request = RequestDescriptor()
        assert step(ParserState.NONE, request, "stray") is ParserState.NONE
        assert request == RequestDescriptor()


class TestInterpret:
    """Tests for interpret function."""

    def test_defaults(self):
        result = interpret([])
        assert result.url is None
        assert result.method == "GET"
        assert result.headers == {}
        assert result.body is None

    def test_user_agent(self):
        result = interpret(["-A", "bot/1.0"])
        assert result.headers["User-Agent"] == "bot/1.0"

    def test_long_user_agent(self):
        result = interpret(["--user-agent", "bot/2.0"])
        assert result.headers["User-Agent"] == "bot/2.0"

    def test_headers(self):
        result = interpret(["-H", "Accept: */*", "--header", "X-Y: z"])
        assert result.headers == {"Accept": "*/*", "X-Y": "z"}

    def test_header_without_separator_is_dropped(self):
        result = interpret(["-H", "X-Empty;"])
        assert result.headers == {}

    def test_data_switches_get_to_post(self):
        result = interpret(["-d", "a=1"])
        assert result.method == "POST"
        assert result.body == "a=1"
        assert result.headers["Content-Type"] == (
            "application/x-www-form-urlencoded"
        )

    def test_data_switches_head_to_post(self):
        result = interpret(["-I", "--data", "a=1"])
        assert result.method == "POST"

    def test_data_keeps_explicit_method(self):
        result = interpret(["-X", "PUT", "--data-binary", "a=1"])
        assert result.method == "PUT"

    def test_data_joined_with_ampersand(self):
        result = interpret(["-d", "a=1", "--data-ascii", "b=2", "-d", "c=3"])
        assert result.body == "a=1&b=2&c=3"

    def test_data_keeps_existing_content_type(self):
        result = interpret(
            ["-H", "Content-Type: application/json", "-d", '{"a": 1}']
        )
        assert result.headers["Content-Type"] == "application/json"

    def test_user(self):
        result = interpret(["--user", "alice:secret"])
        expected = base64.b64encode(b"alice:secret").decode()
        assert result.headers["Authorization"] == f"Basic {expected}"

    def test_head(self):
        assert interpret(["--head"]).method == "HEAD"

    def test_method(self):
        assert interpret(["--request", "DELETE"]).method == "DELETE"

    def test_cookie(self):
        result = interpret(["-b", "session=abc"])
        assert result.headers["Set-Cookie"] == "session=abc"

    def test_compressed(self):
        result = interpret(["--compressed"])
        assert result.headers["Accept-Encoding"] == "deflate, gzip"

    def test_compressed_keeps_existing_encoding(self):
        result = interpret(["-H", "Accept-Encoding: br", "--compressed"])
        assert result.headers["Accept-Encoding"] == "br"

    def test_unknown_flags_ignored(self):
        result = interpret(["-s", "--location", "-v", "https://x"])
        assert result == RequestDescriptor(url="https://x")

    def test_flag_replaces_pending_state(self):
        result = interpret(["-H", "-A", "agent"])
        assert result.headers == {"User-Agent": "agent"}

    def test_dangling_flag_is_dropped(self):
        result = interpret(["https://x", "-H"])
        assert result == RequestDescriptor(url="https://x")

    def test_url_is_never_a_flag_value(self):
        result = interpret(["-H", "https://a", "X-A: b"])
        assert result.url == "https://a"
        assert result.headers == {"X-A": "b"}

    def test_last_url_wins(self):
        assert interpret(["https://a", "https://b"]).url == "https://b"


class TestParseCommand:
    """Tests for parse_command function."""

    def test_full_command(self):
        result = parse_command(
            "curl https://example.com -X POST -d 'a=1' -H 'X-Y: z'"
        )
        assert result.method == "POST"
        assert result.url == "https://example.com"
        assert result.body == "a=1"
        assert result.headers["Content-Type"] == (
            "application/x-www-form-urlencoded"
        )
        assert result.headers["X-Y"] == "z"

    def test_basic_auth(self):
        result = parse_command("curl -u alice:secret https://x")
        assert result.headers["Authorization"] == (
            "Basic " + base64.b64encode(b"alice:secret").decode()
        )

    def test_fused_method_flag(self):
        result = parse_command("curl -XPUT https://x")
        assert result.method == "PUT"

    def test_not_a_command(self):
        assert parse_command("not-curl foo") is None

    def test_command_name_needs_space(self):
        assert parse_command("curlhttps://x") is None

    def test_trailing_flag_without_value(self):
        result = parse_command("curl https://x -H")
        assert result == RequestDescriptor(url="https://x")

    def test_missing_url_still_returns_descriptor(self):
        result = parse_command("curl -X DELETE")
        assert result.url is None
        assert result.method == "DELETE"

    def test_malformed_quoting_propagates(self):
        with pytest.raises(MalformedQuoting):
            parse_command("curl -H 'Accept: x https://x")

    def test_browser_copy_as_curl(self):
        result = parse_command(
            "curl 'https://api.example.com/v1/items' "
            "-H 'accept: application/json' "
            "-H 'user-agent: Mozilla/5.0 (X11; Linux x86_64)' "
            "--data-raw '{\"q\": 1}' --compressed"
        )
        assert result.url == "https://api.example.com/v1/items"
        assert result.headers["accept"] == "application/json"
        assert result.headers["Accept-Encoding"] == "deflate, gzip"
        # --data-raw is not a recognized flag, so its value is ignored.
        assert result.method == "GET"
        assert result.body is None


class TestRequestDescriptor:
    """Tests for the RequestDescriptor container."""

    def test_to_dict(self):
        req = RequestDescriptor("https://x", "POST", {"A": "b"}, "data")
        assert req.to_dict() == {
            "url": "https://x",
            "method": "POST",
            "headers": {"A": "b"},
            "body": "data",
        }

    def test_repr(self):
        r = repr(RequestDescriptor("https://x"))
        assert "GET" in r
        assert "https://x" in r
        assert "<none>" in r

    def test_repr_with_body(self):
        assert "<present>" in repr(RequestDescriptor(body="data"))

    def test_headers_not_shared(self):
        a = RequestDescriptor()
        a.headers["X"] = "1"
        assert RequestDescriptor().headers == {}


class TestBasicAuth:
    """Tests for the Basic credential helper."""

    def test_encodes_credentials(self):
        assert basic_auth("alice:secret") == "Basic YWxpY2U6c2VjcmV0"

    def test_non_ascii_credentials_are_utf8(self):
        assert basic_auth("\u00e9:x") == "Basic w6k6eA=="


class TestLoadCommandFile:
    """Tests for load_command_file function."""

    def test_load_valid_file(self, tmp_path):
        f = tmp_path / "cmd.sh"
        f.write_text("curl https://x -H 'A: b'\n")
        assert load_command_file(str(f)) == "curl https://x -H 'A: b'"

    def test_joins_line_continuations(self, tmp_path):
        f = tmp_path / "cmd.sh"
        f.write_text("curl 'https://x' \\\n  -H 'A: b' \\\n  --compressed\n")
        command = load_command_file(str(f))
        result = parse_command(command)
        assert result.url == "https://x"
        assert result.headers["A"] == "b"
        assert result.headers["Accept-Encoding"] == "deflate, gzip"

    def test_load_nonexistent_file(self):
        with pytest.raises(FileNotFoundError):
            load_command_file("/nonexistent/path/cmd.sh")
