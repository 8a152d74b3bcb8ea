# SPDX-License-Identifier: AGPL-3.0-only
"""Translate a `CaptureRequest` into Playwright calls.

Playwright owns navigation, DOM work and image encoding. Everything here is
plumbing: browser/context options, injected tags, and the screenshot call.
"""
from __future__ import annotations

import asyncio
import sys
import time
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright

from .options import CaptureRequest

URL_SCHEMES = ("http:", "https:", "file:", "data:", "about:")
SAME_SITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None"}

DISABLE_ANIMATIONS_CSS = """
*, ::before, ::after {
  animation: none !important;
  transition: none !important;
}
"""


def is_url(value: str) -> bool:
    return value.lower().startswith(URL_SCHEMES)


def resolve_target_url(input: str) -> str:
    """Return a navigable URL for a URL or local file path input."""
    if is_url(input):
        return input
    return Path(input).expanduser().resolve().as_uri()


def classify_injection(value: str, extension: str) -> Dict[str, str]:
    """Map an injection value to the matching `add_*_tag` keyword."""
    if value.startswith(("http://", "https://")):
        return {"url": value}
    if value.endswith(extension) and Path(value).is_file():
        return {"path": value}
    return {"content": value}


class CookieTargetError(ValueError):
    """A cookie has neither a Domain attribute nor a URL to bind to."""


def parse_cookie(raw: str, url: Optional[str] = None) -> Dict[str, Any]:
    """Parse a `Set-Cookie` style string into a Playwright cookie dict."""
    parts = [p.strip() for p in raw.split(";") if p.strip()]
    if not parts or "=" not in parts[0]:
        raise ValueError(f"Invalid cookie {raw!r}: expected 'name=value'")
    name, _, value = parts[0].partition("=")
    cookie: Dict[str, Any] = {"name": name.strip(), "value": value.strip()}

    for attr in parts[1:]:
        key, _, attr_value = attr.partition("=")
        key = key.strip().lower()
        attr_value = attr_value.strip()
        if key == "domain" and attr_value:
            cookie["domain"] = attr_value
        elif key == "path" and attr_value:
            cookie["path"] = attr_value
        elif key == "expires" and attr_value and "expires" not in cookie:
            try:
                cookie["expires"] = parsedate_to_datetime(attr_value).timestamp()
            except (TypeError, ValueError):
                raise ValueError(f"Invalid cookie expiry in {raw!r}: {attr_value}")
        elif key == "max-age" and attr_value:
            # Max-Age takes precedence over Expires
            try:
                cookie["expires"] = time.time() + int(attr_value)
            except ValueError:
                raise ValueError(f"Invalid cookie Max-Age in {raw!r}: {attr_value}")
        elif key == "secure":
            cookie["secure"] = True
        elif key == "httponly":
            cookie["httpOnly"] = True
        elif key == "samesite" and attr_value.lower() in SAME_SITE_VALUES:
            cookie["sameSite"] = SAME_SITE_VALUES[attr_value.lower()]

    if "domain" in cookie:
        cookie.setdefault("path", "/")
    elif url is not None:
        cookie.pop("path", None)
        cookie["url"] = url
    else:
        raise CookieTargetError(f"Cookie {cookie['name']!r} needs a Domain attribute or a URL input")
    return cookie


def build_launch_options(request: CaptureRequest) -> Dict[str, Any]:
    options: Dict[str, Any] = {"headless": not request.debug}
    if request.debug:
        options["slow_mo"] = 100
    options.update(request.launch_options)
    return options


def build_context_options(request: CaptureRequest, devices: Dict[str, Any]) -> Dict[str, Any]:
    """Browser context keyword arguments for the request."""
    if request.emulate_device:
        if request.emulate_device not in devices:
            raise ValueError(f"The device name `{request.emulate_device}` is not supported")
        options = dict(devices[request.emulate_device])
        # Descriptors carry the browser name, which new_context rejects
        options.pop("default_browser_type", None)
    else:
        options = {
            "viewport": {"width": request.width, "height": request.height},
            "device_scale_factor": request.scale_factor,
        }

    if request.user_agent:
        options["user_agent"] = request.user_agent
    if request.headers:
        options["extra_http_headers"] = dict(request.headers)
    if request.authentication:
        options["http_credentials"] = {
            "username": request.authentication.username,
            "password": request.authentication.password,
        }
    if request.disable_animations:
        options["reduced_motion"] = "reduce"
    return options


def build_screenshot_options(request: CaptureRequest) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "type": request.type,
        "omit_background": not request.default_background,
    }
    if request.type == "jpeg":
        options["quality"] = round(request.quality * 100)
    return options


def hide_elements_css(selectors: List[str], declaration: str) -> str:
    return "\n".join(f"{selector} {{ {declaration} !important; }}" for selector in selectors)


async def _inject(page, request: CaptureRequest):
    for module in request.modules:
        await page.add_script_tag(type="module", **classify_injection(module, ".js"))
    for script in request.scripts:
        await page.add_script_tag(**classify_injection(script, ".js"))
    for style in request.styles:
        await page.add_style_tag(**classify_injection(style, ".css"))
    if request.disable_animations:
        await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)
    if request.hide_elements:
        await page.add_style_tag(
            content=hide_elements_css(request.hide_elements, "visibility: hidden")
        )
    if request.remove_elements:
        await page.add_style_tag(
            content=hide_elements_css(request.remove_elements, "display: none")
        )


async def _add_cookies(context, request: CaptureRequest, url: Optional[str]):
    cookies = []
    for raw in request.cookies:
        try:
            cookies.append(parse_cookie(raw, url))
        except CookieTargetError as exc:
            sys.stderr.write(f"[warn] skipping cookie for HTML input: {exc}\n")
    if cookies:
        await context.add_cookies(cookies)


async def _set_script_execution(session, enabled: bool):
    await session.send("Emulation.setScriptExecutionDisabled", {"value": not enabled})


async def capture(input: str, request: CaptureRequest) -> bytes:
    """Launch a browser, prepare the page and return the screenshot bytes.

    With JavaScript disabled, page scripts are blocked only while the page
    loads; execution is re-enabled before modules and scripts are injected.
    """
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(**build_launch_options(request))
        try:
            context = await browser.new_context(
                **build_context_options(request, playwright.devices)
            )
            timeout_ms = request.timeout * 1000
            context.set_default_timeout(timeout_ms)
            context.set_default_navigation_timeout(timeout_ms)

            url = None if request.input_type == "html" else resolve_target_url(input)
            await _add_cookies(context, request, url)

            page = await context.new_page()
            session = None
            if not request.is_javascript_enabled:
                session = await context.new_cdp_session(page)
                await _set_script_execution(session, False)

            if url is None:
                await page.set_content(input, wait_until="load")
            else:
                await page.goto(url, wait_until="load")

            if session is not None:
                await _set_script_execution(session, True)
            await _inject(page, request)

            if request.wait_for_element:
                await page.wait_for_selector(request.wait_for_element, state="visible")
            if request.click_element:
                await page.click(request.click_element)
            if request.scroll_to_element:
                await page.locator(request.scroll_to_element).scroll_into_view_if_needed()
            if request.delay:
                await page.wait_for_timeout(request.delay * 1000)

            screenshot_options = build_screenshot_options(request)
            if request.element:
                locator = page.locator(request.element)
                await locator.wait_for(state="visible")
                return await locator.screenshot(**screenshot_options)
            return await page.screenshot(full_page=request.full_page, **screenshot_options)
        finally:
            await browser.close()


async def list_devices() -> List[str]:
    async with async_playwright() as playwright:
        return list(playwright.devices)


def buffer(input: str, request: CaptureRequest) -> bytes:
    """Capture `input` and return the encoded image bytes."""
    return asyncio.run(capture(input, request))


def file(input: str, output, request: CaptureRequest) -> int:
    """Capture `input` into `output`; return the number of bytes written."""
    out_path = Path(output)
    if out_path.exists() and not request.overwrite:
        raise FileExistsError(f"File already exists: {out_path} (use --overwrite)")
    data = buffer(input, request)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    # Exclusive create unless overwriting
    mode = "wb" if request.overwrite else "xb"
    try:
        with open(out_path, mode) as f:
            f.write(data)
    except FileExistsError:
        raise FileExistsError(f"File already exists: {out_path} (use --overwrite)")
    return len(data)


def devices() -> List[str]:
    """Names of the device profiles that can be emulated."""
    return asyncio.run(list_devices())
