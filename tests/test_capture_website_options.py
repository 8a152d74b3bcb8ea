from __future__ import annotations

import pytest

from capture_website.options import (
    Authentication,
    CaptureRequest,
    arrify,
    build_capture_request,
    parse_authentication,
    parse_headers,
    parse_launch_options,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, []),
        (".ad", [".ad"]),
        ([".ad"], [".ad"]),
        ([".a", ".b", ".c"], [".a", ".b", ".c"]),
        ((".a", ".b"), [".a", ".b"]),
    ],
)
def test_arrify_always_returns_list(value, expected) -> None:
    assert arrify(value) == expected


def test_repeatable_flags_preserve_count_and_order() -> None:
    request = build_capture_request(
        {
            "hide_elements": [".sidebar", "#ad", ".banner"],
            "remove_elements": "img.ad",
            "module": None,
            "script": ["a.js", "b.js"],
            "style": ["body { color: red }"],
            "cookie": ["id=1", "theme=dark"],
        }
    )
    assert request.hide_elements == [".sidebar", "#ad", ".banner"]
    assert request.remove_elements == ["img.ad"]
    assert request.modules == []
    assert request.scripts == ["a.js", "b.js"]
    assert request.styles == ["body { color: red }"]
    assert request.cookies == ["id=1", "theme=dark"]


def test_parse_headers_trims_and_last_write_wins() -> None:
    headers = parse_headers(["  X-Powered-By :  capture  ", "Accept: text/html", "X-Powered-By: second"])
    assert headers == {"X-Powered-By": "second", "Accept": "text/html"}


def test_parse_headers_keeps_colons_in_value() -> None:
    assert parse_headers("Referer: https://example.com:8080/") == {
        "Referer": "https://example.com:8080/"
    }


def test_parse_headers_without_colon_raises() -> None:
    with pytest.raises(ValueError, match="expected 'key: value'"):
        parse_headers(["no-colon-here"])


def test_parse_authentication_splits_on_first_colon() -> None:
    auth = parse_authentication("user:pa:ss")
    assert auth == Authentication(username="user", password="pa:ss")


def test_parse_authentication_allows_empty_password() -> None:
    assert parse_authentication("user:") == Authentication(username="user", password="")


def test_parse_authentication_without_colon_raises() -> None:
    with pytest.raises(ValueError, match="username:password"):
        parse_authentication("userpass")


def test_parse_launch_options_decodes_object() -> None:
    assert parse_launch_options('{"headless": false, "args": ["--mute-audio"]}') == {
        "headless": False,
        "args": ["--mute-audio"],
    }
    assert parse_launch_options(None) == {}


def test_parse_launch_options_rejects_malformed_json() -> None:
    with pytest.raises(ValueError, match="not valid JSON"):
        parse_launch_options("not json")


def test_parse_launch_options_rejects_non_object() -> None:
    with pytest.raises(ValueError, match="JSON object"):
        parse_launch_options("[1, 2]")


def test_build_capture_request_defaults() -> None:
    request = build_capture_request({}, input="https://example.com")
    assert request == CaptureRequest(input="https://example.com")
    assert request.width == 1280
    assert request.height == 800
    assert request.scale_factor == 2.0
    assert request.type == "png"
    assert request.timeout == 60.0
    assert request.is_javascript_enabled is True
    assert request.default_background is True
    assert request.headers == {}
    assert request.authentication is None
    assert request.launch_options == {}


def test_javascript_only_disabled_explicitly() -> None:
    assert build_capture_request({"javascript": None}).is_javascript_enabled is True
    assert build_capture_request({"javascript": False}).is_javascript_enabled is False


def test_build_capture_request_maps_flags() -> None:
    request = build_capture_request(
        {
            "output": "shot.jpg",
            "type": "jpeg",
            "quality": 0.5,
            "width": 1000,
            "height": 600,
            "scale_factor": 3,
            "header": ["x-powered-by: capture-website-cli"],
            "authentication": "username:password",
            "launch_options": '{"headless": false}',
            "overwrite": True,
        },
        input="index.html",
    )
    assert request.output == "shot.jpg"
    assert request.type == "jpeg"
    assert request.quality == 0.5
    assert (request.width, request.height, request.scale_factor) == (1000, 600, 3.0)
    assert request.headers == {"x-powered-by": "capture-website-cli"}
    assert request.authentication == Authentication("username", "password")
    assert request.launch_options == {"headless": False}
    assert request.overwrite is True


@pytest.mark.parametrize(
    ("flags", "message"),
    [
        ({"width": 0}, "--width and --height"),
        ({"height": -5}, "--width and --height"),
        ({"scale_factor": 0}, "--scale-factor"),
        ({"quality": 1.5}, "--quality"),
        ({"timeout": -1}, "--timeout"),
        ({"delay": -0.1}, "--delay"),
        ({"type": "gif"}, "--type"),
    ],
)
def test_build_capture_request_rejects_out_of_range(flags, message) -> None:
    with pytest.raises(ValueError, match=message):
        build_capture_request(flags)


def test_zero_timeout_is_allowed() -> None:
    assert build_capture_request({"timeout": 0}).timeout == 0


def test_to_dict_is_json_ready() -> None:
    payload = build_capture_request({"authentication": "a:b:c"}, input="x").to_dict()
    assert payload["authentication"] == {"username": "a", "password": "b:c"}
    assert payload["input"] == "x"
    assert payload["hide_elements"] == []


def test_empty_authentication_is_absent() -> None:
    assert parse_authentication("") is None
    assert build_capture_request({"authentication": ""}).authentication is None
