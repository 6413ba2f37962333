"""Request execution and response relay.

Sends a parsed RequestDescriptor with the requests library and packs the
response into a JSON-serializable payload. Also holds the URL allowlist
used to keep relayed requests away from internal hosts.
"""

from __future__ import annotations

import json
from urllib.parse import urlparse

import requests
import urllib3

from curl_relay.parser import RequestDescriptor

DEFAULT_TIMEOUT = 30

ALLOWED_SCHEMES = ("http", "https")

BLOCKED_HOSTS = ("localhost", "127.0.0.1")
BLOCKED_HOST_PREFIXES = ("192.168.", "10.")
BLOCKED_HOST_SUFFIXES = (".local", ".internal")


class ExecutionResult:
    """Container for the outcome of a relayed request."""

    __slots__ = ("status_code", "payload")

    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self.payload = payload

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def to_json(self) -> str:
        return json.dumps(self.payload, indent=2)


def is_allowed_url(url: str) -> bool:
    """Return True if *url* may be relayed.

    Only http and https URLs are allowed, and loopback, private-network
    and ``.local``/``.internal`` hosts are refused.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme not in ALLOWED_SCHEMES or not hostname:
        return False

    if (
        hostname in BLOCKED_HOSTS
        or hostname.startswith(BLOCKED_HOST_PREFIXES)
        or hostname.endswith(BLOCKED_HOST_SUFFIXES)
    ):
        return False

    return True


def read_body(response: requests.Response) -> object:
    """Decode a JSON response body, or return the text for anything else."""
    content_type = response.headers.get("Content-Type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


def execute_request(
    descriptor: RequestDescriptor,
    proxy: str | None = None,
    timeout: int = DEFAULT_TIMEOUT,
    verify: bool = True,
) -> ExecutionResult:
    """Send the described request and relay the response.

    Args:
        descriptor: The parsed curl command.
        proxy: Optional proxy URL used for both http and https.
        timeout: Request timeout in seconds.
        verify: Whether to verify TLS certificates.

    Returns:
        An ExecutionResult. Its status is 400 when the descriptor has no
        URL, 500 when the transport fails, and 200 otherwise; the
        upstream status is carried inside the payload.
    """
    if not descriptor.url:
        return ExecutionResult(400, {"error": "No URL provided in curl command"})

    proxies = None
    if proxy:
        proxies = {"http": proxy, "https": proxy}

    if not verify:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    try:
        response = requests.request(
            method=descriptor.method,
            url=descriptor.url,
            headers=descriptor.headers,
            data=descriptor.body or None,
            proxies=proxies,
            timeout=timeout,
            verify=verify,
            allow_redirects=False,
        )
    except (requests.RequestException, ValueError) as exc:
        # ValueError covers methods with non-token characters and header
        # values that are not Latin-1 encodable.
        return ExecutionResult(
            500, {"parsed": descriptor.to_dict(), "error": str(exc)}
        )

    return ExecutionResult(
        200,
        {
            "status": response.status_code,
            "statusText": response.reason,
            "headers": dict(response.headers),
            "body": read_body(response),
        },
    )


def print_report(result: ExecutionResult) -> None:
    """Print a formatted relay report to stdout."""
    banner = "=" * 60
    print(f"\n{banner}")
    print("  CURL-RELAY — Response")
    print(banner)

    upstream = result.payload.get("status")
    if upstream is not None:
        print(f"\n  Status : {upstream} {result.payload.get('statusText', '')}")
    else:
        print(f"\n  Relay failed (HTTP {result.status_code})")

    print(f"\n{result.to_json()}")
    print(f"\n{banner}\n")
