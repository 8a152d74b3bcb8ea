# SPDX-License-Identifier: AGPL-3.0-only
"""Enable `python -m capture_website` invocation."""
from capture_website_cli.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
