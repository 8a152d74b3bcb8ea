# SPDX-License-Identifier: AGPL-3.0-only
"""Normalization of flat command-line flags into a capture request.

`build_capture_request` is a pure function: it never touches the network or
the filesystem, and every user-input problem it finds is raised as a
`ValueError` before a browser is launched.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

IMAGE_TYPES = ("png", "jpeg")

DEFAULTS = {
    "width": 1280,
    "height": 800,
    "type": "png",
    "quality": 1.0,
    "scale_factor": 2.0,
    "timeout": 60.0,
    "delay": 0.0,
}


@dataclass(frozen=True)
class Authentication:
    username: str
    password: str


@dataclass(frozen=True)
class CaptureRequest:
    """All rendering parameters for a single invocation."""

    input: Optional[str] = None
    input_type: str = "url"
    output: Optional[str] = None
    width: int = DEFAULTS["width"]
    height: int = DEFAULTS["height"]
    scale_factor: float = DEFAULTS["scale_factor"]
    type: str = DEFAULTS["type"]
    quality: float = DEFAULTS["quality"]
    emulate_device: Optional[str] = None
    full_page: bool = False
    default_background: bool = True
    timeout: float = DEFAULTS["timeout"]
    delay: float = DEFAULTS["delay"]
    wait_for_element: Optional[str] = None
    element: Optional[str] = None
    click_element: Optional[str] = None
    scroll_to_element: Optional[str] = None
    hide_elements: List[str] = field(default_factory=list)
    remove_elements: List[str] = field(default_factory=list)
    disable_animations: bool = False
    is_javascript_enabled: bool = True
    modules: List[str] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: Optional[str] = None
    cookies: List[str] = field(default_factory=list)
    authentication: Optional[Authentication] = None
    debug: bool = False
    launch_options: Dict[str, Any] = field(default_factory=dict)
    overwrite: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def arrify(value) -> List[Any]:
    """Coerce an optional scalar or sequence into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_headers(values) -> Dict[str, str]:
    """Parse `key: value` strings; later duplicates overwrite earlier ones."""
    headers: Dict[str, str] = {}
    for raw in arrify(values):
        key, sep, value = str(raw).partition(":")
        if not sep:
            raise ValueError(f"Invalid header {raw!r}: expected 'key: value'")
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid header {raw!r}: header name is empty")
        headers[key] = value.strip()
    return headers


def parse_authentication(value: Optional[str]) -> Optional[Authentication]:
    """Split `username:password` on the first colon only."""
    if not value:
        return None
    username, sep, password = value.partition(":")
    if not sep:
        raise ValueError(
            f"Invalid authentication {value!r}: expected 'username:password'"
        )
    return Authentication(username=username, password=password)


def parse_launch_options(value) -> Dict[str, Any]:
    """Decode `--launch-options` JSON text into a dict."""
    if value is None or value == "":
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--launch-options is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(
            f"--launch-options must be a JSON object (got {type(parsed).__name__})"
        )
    return parsed


def _validate_ranges(width, height, scale_factor, quality, timeout, delay):
    if width <= 0 or height <= 0:
        raise ValueError(f"--width and --height must be positive (got {width}x{height})")
    if scale_factor <= 0:
        raise ValueError(f"--scale-factor must be positive (got {scale_factor})")
    if not 0 <= quality <= 1:
        raise ValueError(f"--quality must be between 0 and 1 (got {quality})")
    if timeout < 0:
        raise ValueError(f"--timeout must not be negative (got {timeout})")
    if delay < 0:
        raise ValueError(f"--delay must not be negative (got {delay})")


def _get(flags: Mapping[str, Any], key: str, default=None):
    value = flags.get(key)
    return default if value is None else value


def build_capture_request(flags: Mapping[str, Any], input: Optional[str] = None,
                          input_type: str = "url") -> CaptureRequest:
    """Build a `CaptureRequest` from a mapping of parsed flag values.

    Keys are flag destinations (`scale_factor`, `hide_elements`, ...).
    Missing or `None` values fall back to the documented defaults.
    """
    image_type = str(_get(flags, "type", DEFAULTS["type"])).lower()
    if image_type not in IMAGE_TYPES:
        raise ValueError(f"--type must be one of {', '.join(IMAGE_TYPES)} (got {image_type!r})")

    width = int(_get(flags, "width", DEFAULTS["width"]))
    height = int(_get(flags, "height", DEFAULTS["height"]))
    scale_factor = float(_get(flags, "scale_factor", DEFAULTS["scale_factor"]))
    quality = float(_get(flags, "quality", DEFAULTS["quality"]))
    timeout = float(_get(flags, "timeout", DEFAULTS["timeout"]))
    delay = float(_get(flags, "delay", DEFAULTS["delay"]))
    _validate_ranges(width, height, scale_factor, quality, timeout, delay)

    return CaptureRequest(
        input=input,
        input_type=input_type,
        output=flags.get("output"),
        width=width,
        height=height,
        scale_factor=scale_factor,
        type=image_type,
        quality=quality,
        emulate_device=flags.get("emulate_device"),
        full_page=bool(flags.get("full_page")),
        default_background=bool(_get(flags, "default_background", True)),
        timeout=timeout,
        delay=delay,
        wait_for_element=flags.get("wait_for_element"),
        element=flags.get("element"),
        click_element=flags.get("click_element"),
        scroll_to_element=flags.get("scroll_to_element"),
        hide_elements=arrify(flags.get("hide_elements")),
        remove_elements=arrify(flags.get("remove_elements")),
        disable_animations=bool(flags.get("disable_animations")),
        is_javascript_enabled=bool(_get(flags, "javascript", True)),
        modules=arrify(flags.get("module")),
        scripts=arrify(flags.get("script")),
        styles=arrify(flags.get("style")),
        headers=parse_headers(flags.get("header")),
        user_agent=flags.get("user_agent"),
        cookies=arrify(flags.get("cookie")),
        authentication=parse_authentication(flags.get("authentication")),
        debug=bool(flags.get("debug")),
        launch_options=parse_launch_options(flags.get("launch_options")),
        overwrite=bool(flags.get("overwrite")),
    )
