# SPDX-License-Identifier: AGPL-3.0-only
"""capture-website command-line entrypoint.

Captures a screenshot of a URL, a local HTML file, or HTML piped on stdin,
and writes it to `--output` or to stdout.
"""
import argparse
import dataclasses
import json
import sys

import capture_website
from capture_website.config import load_flag_defaults
from capture_website.options import (
    IMAGE_TYPES,
    arrify,
    build_capture_request,
    parse_launch_options,
)

from . import __version__


MISSING_INPUT_MESSAGE = "Please specify a URL, file path or HTML"

SCHEMA_REGISTRY = {
    "capture": "capture_website.capture_result.v1",
    "devices": "capture_website.devices.v1",
    "error": "capture_website.error.v1",
}

# Flags that may be given more than once
REPEATABLE_DESTS = (
    "hide_elements",
    "remove_elements",
    "module",
    "script",
    "style",
    "header",
    "cookie",
)

EXAMPLES = """\
examples:
  $ capture-website https://sindresorhus.com --output=screenshot.png
  $ capture-website index.html --output=screenshot.png
  $ echo "<h1>Unicorn</h1>" | capture-website --output=screenshot.png

flag examples:
  --emulate-device="iPhone X"
  --hide-elements=".sidebar"
  --module="document.body.style.backgroundColor = 'red'"
  --header="x-powered-by: capture-website-cli"
  --cookie="id=unicorn; Expires=Wed, 21 Oct 2018 07:28:00 GMT;"
  --authentication="username:password"
  --launch-options='{"headless": false}'
"""


def _add_bool_flag(p, name, default, help=None):
    """Register paired boolean flags (`--x` and `--no-x`) on a parser."""
    dest = name.replace("-", "_")
    p.add_argument(f"--{name}", dest=dest, action="store_true", help=help)
    p.add_argument(f"--no-{name}", dest=dest, action="store_false")
    p.set_defaults(**{dest: default})


def _build_parser():
    """Construct and return the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="capture-website",
        usage="%(prog)s [options] <url|file>\n       echo \"<h1>Unicorn</h1>\" | %(prog)s [options]",
        description="Capture screenshots of websites.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", nargs="?", help="URL or local file path (omit to read HTML from stdin)")
    parser.add_argument("--version", action="version", version="capture-website-cli " + __version__)
    parser.add_argument("--config", help="TOML file with default flag values in a [flags] table")
    parser.add_argument("--json", action="store_true",
                        help="Emit JSON result/error envelopes on stdout (requires --output)")
    parser.add_argument("--internal-print-flags", action="store_true", help=argparse.SUPPRESS)

    parser.add_argument("--output", help="Image file path (writes it to stdout if omitted)")
    parser.add_argument("--width", type=int, default=1280, help="Page width (default: 1280)")
    parser.add_argument("--height", type=int, default=800, help="Page height (default: 800)")
    parser.add_argument("--type", choices=IMAGE_TYPES, default="png", help="Image type (default: png)")
    parser.add_argument("--quality", type=float, default=1.0,
                        help="Image quality: 0...1, only for JPEG (default: 1)")
    parser.add_argument("--scale-factor", type=float, default=2.0,
                        help="Scale the webpage `n` times (default: 2)")
    parser.add_argument("--list-devices", action="store_true",
                        help="Output a list of supported devices to emulate")
    parser.add_argument("--emulate-device", help="Capture as if it were captured on the given device")
    parser.add_argument("--full-page", action="store_true",
                        help="Capture the full scrollable page, not just the viewport")
    _add_bool_flag(parser, "default-background", True,
                   help="Keep the default background (--no-default-background makes it transparent)")
    parser.add_argument("--timeout", type=float, default=60.0,
                        help="Seconds before giving up trying to load the page; 0 disables (default: 60)")
    parser.add_argument("--delay", type=float, default=0.0,
                        help="Seconds to wait after the page finished loading before capturing (default: 0)")
    parser.add_argument("--wait-for-element",
                        help="Wait for a visible DOM element matching the CSS selector before capturing")
    parser.add_argument("--element", help="Capture the DOM element matching the CSS selector")
    parser.add_argument("--hide-elements", action="append",
                        help="Hide DOM elements matching the CSS selector (repeatable)")
    parser.add_argument("--remove-elements", action="append",
                        help="Remove DOM elements matching the CSS selector (repeatable)")
    parser.add_argument("--click-element", help="Click the DOM element matching the CSS selector")
    parser.add_argument("--scroll-to-element", help="Scroll to the DOM element matching the CSS selector")
    parser.add_argument("--disable-animations", action="store_true",
                        help="Disable CSS animations and transitions")
    _add_bool_flag(parser, "javascript", True,
                   help="JavaScript execution (--no-javascript does not affect --module/--script)")
    parser.add_argument("--module", action="append",
                        help="Inject a JavaScript module: inline code, absolute URL, or .js file (repeatable)")
    parser.add_argument("--script", action="append",
                        help="Same as --module, but injects the code as a classic script")
    parser.add_argument("--style", action="append",
                        help="Inject CSS: inline code, absolute URL, or .css file (repeatable)")
    parser.add_argument("--header", action="append", help="Set a custom HTTP header (repeatable)")
    parser.add_argument("--user-agent", help="Set the user agent")
    parser.add_argument("--cookie", action="append", help="Set a cookie (repeatable)")
    parser.add_argument("--authentication", help="Credentials for HTTP authentication (username:password)")
    parser.add_argument("--debug", action="store_true", help="Show the browser window to see what it's doing")
    parser.add_argument("--launch-options", help="Playwright launch options as JSON")
    parser.add_argument("--overwrite", action="store_true",
                        help="Overwrite the destination file if it exists")
    return parser


def _parse_args(argv):
    """Parse argv, applying `--config` defaults beneath explicit flags."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.config:
        dests = {
            a.dest for a in parser._actions
            if a.dest not in {"help", "version", "config", "input"}
        }
        defaults = load_flag_defaults(args.config, dests)
        for dest in REPEATABLE_DESTS:
            if dest in defaults:
                defaults[dest] = [str(v) for v in arrify(defaults[dest])]
        parser.set_defaults(**defaults)
        args = parser.parse_args(argv)
    return args


def _read_stdin():
    """Read piped HTML; an interactive terminal counts as no input."""
    stream = sys.stdin
    if stream is None or stream.isatty():
        return ""
    return stream.read()


def _json_default(obj):
    """Best-effort JSON serializer fallback for CLI payload objects."""
    if isinstance(obj, (bytes, bytearray)):
        return {"type": "bytes", "length": len(obj)}
    return str(obj)


def _json_dumps(payload):
    return json.dumps(payload, ensure_ascii=True, default=_json_default)


def _emit_error(args, message, code="CLI_ERROR"):
    if getattr(args, "json", False):
        err = {
            "schema": SCHEMA_REGISTRY["error"],
            "ok": False,
            "code": code,
            "message": message,
        }
        sys.stdout.write(_json_dumps(err) + "\n")
    else:
        sys.stderr.write(f"[error] {message}\n")


def cmd_print_flags(args, request):
    """Print the normalized capture request without rendering."""
    sys.stdout.write(_json_dumps(request.to_dict()) + "\n")


def cmd_list_devices(args):
    """Print the names of the device profiles that can be emulated."""
    names = capture_website.devices()
    if args.json:
        payload = {"schema": SCHEMA_REGISTRY["devices"], "devices": names}
        sys.stdout.write(_json_dumps(payload) + "\n")
        return
    sys.stdout.write("\n".join(names) + "\n")


def cmd_capture(args, request):
    """Render the request to `--output`, or to stdout when it is omitted."""
    if request.output:
        bytes_written = capture_website.file(request.input, request.output, request)
        if args.json:
            payload = {
                "schema": SCHEMA_REGISTRY["capture"],
                "ok": True,
                "bytes_written": bytes_written,
                "outputs": {"image": request.output, "type": request.type},
            }
            sys.stdout.write(_json_dumps(payload) + "\n")
        return
    data = capture_website.buffer(request.input, request)
    sys.stdout.buffer.write(data)
    sys.stdout.flush()


def run(args):
    """Dispatch parsed arguments; return the process exit code."""
    if args.list_devices and not args.internal_print_flags:
        # Only malformed --launch-options stops the device listing
        parse_launch_options(args.launch_options)
        cmd_list_devices(args)
        return 0

    request = build_capture_request(vars(args), input=args.input)

    if args.internal_print_flags:
        cmd_print_flags(args, request)
        return 0

    if args.json and not request.output:
        raise ValueError("--json cannot be used without --output (image bytes go to stdout)")

    if not request.input:
        html = _read_stdin()
        if not html.strip():
            if args.json:
                _emit_error(args, MISSING_INPUT_MESSAGE, code="MISSING_INPUT")
            else:
                sys.stderr.write(MISSING_INPUT_MESSAGE + "\n")
            return 1
        request = dataclasses.replace(request, input=html, input_type="html")

    cmd_capture(args, request)
    return 0


def main(argv=None):
    """Execute the CLI and standardized error handling."""
    argv = list(sys.argv[1:] if argv is None else argv)
    force_json = "--json" in argv
    try:
        args = _parse_args(argv)
    except (OSError, ValueError) as exc:
        # Config file problems surface before args exist
        _emit_error(argparse.Namespace(json=force_json), str(exc))
        return 1
    try:
        return run(args)
    except Exception as exc:
        _emit_error(args, str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
