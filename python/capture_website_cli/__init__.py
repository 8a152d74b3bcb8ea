# SPDX-License-Identifier: AGPL-3.0-only
"""Version metadata for the capture-website CLI package."""
from importlib.metadata import PackageNotFoundError, version


def _get_version():
    """Resolve the installed package version for CLI reporting."""
    try:
        return version("capture-website-cli")
    except PackageNotFoundError:
        return "0.0.0-dev"


__version__ = _get_version()
