"""Capture encoding for wimlib-imagex output.

wimlib-imagex prints XML metadata as UTF-16LE. On POSIX hosts that stream is
decoded as such. On Windows the console mangles it, so the bytes are taken as
8-bit text and cleaned up afterwards instead of being redirected to a
temporary file.
"""

from __future__ import annotations

import sys

UTF16LE = "utf-16-le"
UTF8 = "utf-8"
XML_FLAG = "--xml"

_WINDOWS_PLATFORMS = frozenset({"win32", "cygwin"})


def is_windows_like(platform: str | None = None) -> bool:
    return (platform or sys.platform) in _WINDOWS_PLATFORMS


def requests_xml(args: list[str]) -> bool:
    return XML_FLAG in args


def choose_capture_encoding(platform: str | None, output_is_xml: bool) -> str:
    if output_is_xml and not is_windows_like(platform):
        return UTF16LE
    return UTF8


def clean_misencoded_xml(text: str) -> str:
    """Strip the noise left by reading UTF-16LE XML as 8-bit text.

    The first two characters are the remains of the byte-order mark. The
    character that follows is taken as the noise marker and every occurrence
    of it is removed. A payload that legitimately contains the marker loses
    those characters too.
    """
    text = text[2:]
    if not text:
        return ""
    marker = text[0]
    return text.replace(marker, "")


def decode_capture(raw: bytes, encoding: str, output_is_xml: bool) -> str:
    text = raw.decode(encoding, errors="replace")
    if encoding == UTF8 and output_is_xml:
        return clean_misencoded_xml(text)
    return text
