"""curl command interpretation.

Turns the words of a curl command line into a RequestDescriptor that the
engine can send with the requests library. Parsing is deliberately
permissive: unknown flags are skipped, a flag missing its value is
dropped, and nothing here raises except the tokenizer's MalformedQuoting.
"""

from __future__ import annotations

import base64
import enum
import re

from curl_relay.tokenizer import tokenize

COMMAND_NAME = "curl"

METHOD_FLAG = "-X"

DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"
COMPRESSED_ENCODING = "deflate, gzip"

_URL_RE = re.compile(r"^(https?|ftp|file)://")
# The value stops at the first line break.
_HEADER_SPLIT_RE = re.compile(r": (.+)")


class ParserState(enum.Enum):
    """What the next plain value on the command line is consumed as."""

    NONE = "none"
    EXPECT_HEADER = "expect-header"
    EXPECT_USER_AGENT = "expect-user-agent"
    EXPECT_DATA = "expect-data"
    EXPECT_USER = "expect-user"
    EXPECT_METHOD = "expect-method"
    EXPECT_COOKIE = "expect-cookie"


# Flags that take the following word as their value.
VALUE_FLAGS: dict[str, ParserState] = {
    "-A": ParserState.EXPECT_USER_AGENT,
    "--user-agent": ParserState.EXPECT_USER_AGENT,
    "-H": ParserState.EXPECT_HEADER,
    "--header": ParserState.EXPECT_HEADER,
    "-d": ParserState.EXPECT_DATA,
    "--data": ParserState.EXPECT_DATA,
    "--data-ascii": ParserState.EXPECT_DATA,
    "--data-binary": ParserState.EXPECT_DATA,
    "-u": ParserState.EXPECT_USER,
    "--user": ParserState.EXPECT_USER,
    "-X": ParserState.EXPECT_METHOD,
    "--request": ParserState.EXPECT_METHOD,
    "-b": ParserState.EXPECT_COOKIE,
    "--cookie": ParserState.EXPECT_COOKIE,
}

HEAD_FLAGS = ("-I", "--head")
COMPRESSED_FLAG = "--compressed"


class RequestDescriptor:
    """Container for a request described by a curl command."""

    __slots__ = ("url", "method", "headers", "body")

    def __init__(
        self,
        url: str | None = None,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> None:
        self.url = url
        self.method = method
        self.headers = headers if headers is not None else {}
        self.body = body

    def to_dict(self) -> dict:
        """Return a JSON-serializable view of the descriptor."""
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "body": self.body,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestDescriptor):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"RequestDescriptor(method={self.method!r}, url={self.url!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body else '<none>'})"
        )


def is_url(token: str) -> bool:
    """Return True if *token* starts with an http, https, ftp or file scheme."""
    return _URL_RE.match(token) is not None


def normalize_flags(tokens: list[str]) -> list[str]:
    """Split fused method flags such as ``-XPUT`` into ``-X``, ``PUT``.

    Every other token, including a bare ``-X``, is passed through as is,
    so running this twice gives the same result as running it once.
    """
    normalized: list[str] = []
    for token in tokens:
        if token.startswith(METHOD_FLAG) and len(token) > len(METHOD_FLAG):
            normalized.append(METHOD_FLAG)
            normalized.append(token[len(METHOD_FLAG):])
        else:
            normalized.append(token)
    return normalized


def parse_header(value: str) -> tuple[str, str] | None:
    """Split ``Name: value`` on the first ``": "``.

    Returns None when there is no separator or nothing follows it on
    the same line.
    """
    parts = _HEADER_SPLIT_RE.split(value, maxsplit=1)
    if len(parts) < 2:
        return None
    return parts[0], parts[1]


def basic_auth(credentials: str) -> str:
    """Build a Basic Authorization header value from ``user:password``."""
    encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def _apply_value(
    request: RequestDescriptor, state: ParserState, value: str
) -> None:
    """Consume *value* for the pending *state*."""
    headers = request.headers

    if state is ParserState.EXPECT_HEADER:
        field = parse_header(value)
        if field is not None:
            headers[field[0]] = field[1]
    elif state is ParserState.EXPECT_USER_AGENT:
        headers["User-Agent"] = value
    elif state is ParserState.EXPECT_DATA:
        if request.method in ("GET", "HEAD"):
            request.method = "POST"
        headers.setdefault("Content-Type", DEFAULT_CONTENT_TYPE)
        request.body = f"{request.body}&{value}" if request.body else value
    elif state is ParserState.EXPECT_USER:
        headers["Authorization"] = basic_auth(value)
    elif state is ParserState.EXPECT_METHOD:
        request.method = value
    elif state is ParserState.EXPECT_COOKIE:
        headers["Set-Cookie"] = value


def step(
    state: ParserState, request: RequestDescriptor, token: str
) -> ParserState:
    """Apply one token to *request* and return the next parser state.

    A URL-looking token is always taken as the URL, even while a flag is
    waiting for its value; the pending state is left untouched.
    """
    if is_url(token):
        request.url = token
        return state

    if token in VALUE_FLAGS:
        return VALUE_FLAGS[token]

    if token in HEAD_FLAGS:
        request.method = "HEAD"
        return state

    if token == COMPRESSED_FLAG:
        request.headers.setdefault("Accept-Encoding", COMPRESSED_ENCODING)
        return state

    if not token:
        return state

    _apply_value(request, state, token)
    return ParserState.NONE


def interpret(tokens: list[str]) -> RequestDescriptor:
    """Build a RequestDescriptor from curl arguments.

    Args:
        tokens: The words after the command name, already normalized.

    Returns:
        The descriptor, even if no URL was found.
    """
    request = RequestDescriptor()
    state = ParserState.NONE
    for token in tokens:
        state = step(state, request, token)
    return request


def parse_command(line: str) -> RequestDescriptor | None:
    """Parse a full ``curl ...`` command line.

    Args:
        line: The raw command line, including the ``curl`` command name.

    Returns:
        A RequestDescriptor, or None if *line* is not a curl command.

    Raises:
        MalformedQuoting: If the line has an unpaired quote.
    """
    if not line.startswith(COMMAND_NAME + " "):
        return None

    words = tokenize(line)
    # The first word is always the command name itself.
    return interpret(normalize_flags(words[1:]))


def load_command_file(filepath: str) -> str:
    """Read a curl command from a file.

    Backslash-newline continuations, as copied from a browser's
    "Copy as cURL", are joined into a single line.

    Raises:
        FileNotFoundError: If the file does not exist.
        IOError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        text = fh.read()
    return re.sub(r"\\\r?\n", " ", text).strip()
