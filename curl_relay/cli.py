"""Command-line interface for curl-relay.

Provides argparse-based input handling: a curl command given inline or
in a file, request options for the relay, and a server mode.
"""

import argparse
import os
import sys

from curl_relay import __version__
from curl_relay.engine import DEFAULT_TIMEOUT

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the curl-relay CLI."""
    parser = argparse.ArgumentParser(
        prog="curl-relay",
        description=(
            "curl-relay v{ver} — Parse a curl command line and relay it "
            "as an HTTP request.\n\n"
            "Understands the common curl flags (-X, -H, -d, -u, -A, -b, "
            "-I, --compressed) and prints the response as JSON."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  curl-relay \"curl https://api.example.com -H 'Accept: "
            "application/json'\"\n"
            "  curl-relay --command-file request.sh --dry-run\n"
            "  curl-relay --serve --port 8787\n"
        ),
    )

    parser.add_argument(
        "command",
        nargs="?",
        default=None,
        help="The full curl command line, quoted as one argument.",
    )
    parser.add_argument(
        "--command-file",
        default=None,
        help="Path to a file containing the curl command.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the parsed request as JSON without sending it.",
    )
    parser.add_argument(
        "--proxy",
        default=None,
        help="Route traffic through a proxy (e.g. http://127.0.0.1:8080).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--insecure",
        action="store_false",
        dest="verify",
        help="Do not verify TLS certificates.",
    )
    parser.add_argument(
        "--allow-internal",
        action="store_true",
        help="Skip the URL allowlist and permit internal hosts.",
    )

    server = parser.add_argument_group("server mode")
    server.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP gateway instead of relaying a single command.",
    )
    server.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Address to bind in server mode (default: {DEFAULT_HOST}).",
    )
    server.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to bind in server mode (default: {DEFAULT_PORT}).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If no single command source was given, the command
            file is missing or unreadable, or a numeric option is out of
            range.
    """
    sources = [
        args.command is not None,
        args.command_file is not None,
        args.serve,
    ]
    if sum(sources) != 1:
        print(
            "Error: Give exactly one of COMMAND, --command-file or --serve.",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.command is not None and not args.command.strip():
        print("Error: Command cannot be empty.", file=sys.stderr)
        sys.exit(1)

    if args.command_file is not None:
        if not os.path.isfile(args.command_file):
            print(
                f"Error: Command file not found: '{args.command_file}'",
                file=sys.stderr,
            )
            sys.exit(1)

        if not os.access(args.command_file, os.R_OK):
            print(
                f"Error: Command file is not readable: '{args.command_file}'",
                file=sys.stderr,
            )
            sys.exit(1)

    if args.timeout <= 0:
        print("Error: Timeout must be a positive number.", file=sys.stderr)
        sys.exit(1)

    if not 0 < args.port < 65536:
        print(f"Error: Invalid port: {args.port}", file=sys.stderr)
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    return args
