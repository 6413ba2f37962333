"""curl-relay — Main entry point.

Ties together the CLI, parser, engine and gateway modules.
"""

import json
import sys

from curl_relay.cli import parse_cli
from curl_relay.engine import execute_request, is_allowed_url, print_report
from curl_relay.gateway import serve
from curl_relay.parser import load_command_file, parse_command
from curl_relay.tokenizer import MalformedQuoting


def main(argv: list[str] | None = None) -> int:
    """Run curl-relay.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = relayed, 1 = rejected or relay failed, 2 = error).
    """
    args = parse_cli(argv)

    if args.serve:
        serve(
            args.host,
            args.port,
            execute=lambda parsed: execute_request(
                parsed,
                proxy=args.proxy,
                timeout=args.timeout,
                verify=args.verify,
            ),
            allow=(lambda url: True) if args.allow_internal else is_allowed_url,
        )
        return 0

    if args.command_file is not None:
        print(f"[*] Loading curl command from: {args.command_file}")
        try:
            command = load_command_file(args.command_file)
        except (FileNotFoundError, IOError) as exc:
            print(f"Error reading command file: {exc}", file=sys.stderr)
            return 2
    else:
        command = args.command.strip()

    print("[*] Parsing curl command...")
    try:
        parsed = parse_command(command)
    except MalformedQuoting as exc:
        print(f"Error parsing command: {exc}", file=sys.stderr)
        return 2

    if parsed is None:
        print("Error: Not a curl command.", file=sys.stderr)
        return 2

    print(f"    Method : {parsed.method}")
    print(f"    URL    : {parsed.url or '<missing>'}")
    print(f"    Headers: {len(parsed.headers)}")
    print(f"    Body   : {'Yes' if parsed.body else 'No'}")

    if args.dry_run:
        print(json.dumps(parsed.to_dict(), indent=2))
        return 0

    if parsed.url and not args.allow_internal and not is_allowed_url(parsed.url):
        print(
            f"Error: URL not allowed for security reasons: {parsed.url}",
            file=sys.stderr,
        )
        return 1

    print(f"\n[*] Relaying {parsed.method} request...")
    if args.proxy:
        print(f"    Proxy  : {args.proxy}")

    try:
        result = execute_request(
            parsed,
            proxy=args.proxy,
            timeout=args.timeout,
            verify=args.verify,
        )
    except Exception as exc:
        print(f"Error during request relay: {exc}", file=sys.stderr)
        return 2

    print_report(result)

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
