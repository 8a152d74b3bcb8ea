# SPDX-License-Identifier: AGPL-3.0-only
"""Capture screenshots of websites, local files, or HTML.

The package exposes two capture calls, `file` and `buffer`, plus `devices`
for the emulation profiles Playwright knows about. Rendering itself is done
by Playwright-driven Chromium.
"""
from .engine import buffer, devices, file
from .options import Authentication, CaptureRequest, build_capture_request

__all__ = [
    "Authentication",
    "CaptureRequest",
    "build_capture_request",
    "buffer",
    "devices",
    "file",
]
