import re
from collections.abc import Callable

LINE_BREAK_PATTERN = re.compile(r"<br\s*/?\s*>|&lt;br\s*/?\s*&gt;", re.IGNORECASE)
CODE_FENCE_PATTERN = re.compile(r"```(?:html)?", re.IGNORECASE)

HEAD_BLOCK_PATTERN = re.compile(r"<head[\s>][\s\S]*?</head\s*>|<head>", re.IGNORECASE)
STYLE_BLOCK_PATTERN = re.compile(r"<style[\s\S]*?</style\s*>", re.IGNORECASE)
STYLE_ATTRIBUTE_PATTERN = re.compile(r"""\s+style\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)


def _until_stable(transform: Callable[[str], str], text: str) -> str:
    """Removing a marker can join its neighbours into a new one, so apply until nothing changes."""

    while (transformed := transform(text)) != text:
        text = transformed
    return text


def _analysis_pass(text: str) -> str:
    text = LINE_BREAK_PATTERN.sub("", text)
    text = CODE_FENCE_PATTERN.sub("", text)
    return text.strip()


def _slidedeck_pass(text: str) -> str:
    text = HEAD_BLOCK_PATTERN.sub("", text)
    text = STYLE_BLOCK_PATTERN.sub("", text)
    text = STYLE_ATTRIBUTE_PATTERN.sub("", text)
    return text.strip()


def sanitize_analysis_html(html: str) -> str:
    """Strip line-break tags (literal and entity-encoded), markdown code fences and surrounding whitespace."""

    return _until_stable(_analysis_pass, html)


def sanitize_slidedeck_html(html: str) -> str:
    """Strip head and style blocks, inline style attributes and surrounding whitespace. Line breaks are kept."""

    return _until_stable(_slidedeck_pass, html)
