"""Boilerplate removal for scraped page markdown.

Firecrawl returns the full page as markdown, which drags in navigation
menus, cookie/ad banners, error pages and embedded video player text.
``clean_markdown_content`` prepares text for on-screen display while
``markdown_to_plain_text`` is the stricter variant used for PDF export.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Pattern, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup


NAV_KEYWORDS = [
    "Hide", "Jump to content", "Log in", "Log In", "Sign in", "Sign In", "Sign up", "Sign Up",
    "Back", "Skip navigation", "Skip to content", "Search", "More +", "Participate in",
    "Open in app", "Write", "Sitemap", "Ask the Chatbot", "Games & Quizzes", "History & Society",
    "Science & Tech", "Biographies", "Animals & Nature", "Geography & Travel", "Arts & Culture",
    "ProCon", "Money", "Videos", "Introduction", "Etymology", "Skip to search", "Go to",
    "Try again", "Wait a moment", "Try searching", "browse some of our favourites",
]

# link texts dropped entirely when rendering links for export
EXPORT_SKIP_LINK_WORDS = (
    "hide", "jump", "log", "sign", "skip", "search", "back", "menu", "more", "open in",
    "write", "sitemap", "try again", "wait", "logo", "youtube", "watch", "share",
)

# substrings that mark a line as site chrome when picking preview lines
CHROME_LINE_WORDS = ("skip", "jump", "navigation", "hide", "log in", "sign")

_IMAGE_LINKED_RE = re.compile(r"!\[([^\]]*)\]\([^\)]+\)\]?\([^\)]*\)?")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^\)]+\)")
_NAV_LINK_RES = [
    re.compile(rf"\[{re.escape(keyword)}[^\]]*\]\([^\)]+\)", re.IGNORECASE) for keyword in NAV_KEYWORDS
]
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^\)]+)\)")
_URL_LINK_RE = re.compile(r"\[(https?://[^\]]+)\]\(https?://[^\)]+\)")
_AUTOLINK_RE = re.compile(r"<([a-zA-Z][a-zA-Z0-9+.-]*:[^\s<>]*)>")
_HTML_TAG_RE = re.compile(r"</?(?![a-zA-Z][a-zA-Z0-9+.-]*:)[a-zA-Z][^>]*>")

_EMPHASIS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"\*\*([^\*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^\*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
]


def _compile(patterns: Iterable[str], flags: int = re.IGNORECASE) -> List[Pattern[str]]:
    return [re.compile(pattern, flags) for pattern in patterns]


_ERROR_PAGE = _compile(
    [
        r"Error \d+ \(.*?\)!!?\d*",
        r"\*\*\d+\.\*\* That's an error\.",
        r"We're sorry, but you do not have access to this page\. That's all we know\.",
        r"The page you were looking for appears to have moved or never existed\.",
        r"Something went wrong\. Wait a moment and try again\.",
        r"\b404\b",
        r"reCAPTCHA.*?verification",
        r"protected by.*?reCAPTCHA",
        r"Privacy.*?Terms",
    ]
)

_ADS = _compile(
    [
        r"Advertisement.*?Remove Ads",
        r"Want to remove ads\?.*?Premium Member.*?remove all ads",
        r"Remove Ads",
    ]
)

_ENCYCLOPEDIA = _compile(
    [
        r"From Wikipedia, the free encyclopedia",
        r"Type of cooperative argumentative dialogue",
    ]
)

_MENUS = _compile(
    [
        r"\*?\s*(?:\b(?:Articles|Client Education|Professional Guides|Topics)\b|More \+)",
        r"\[.*?Logo.*?\]\([^\)]+\)",
    ]
)

_VIDEO = _compile(
    [
        r"\[.*?YouTube.*?\]\([^\)]+\)",
        r"Watch here!.*?YouTube",
        r"Prefer a video version.*?Watch here!",
        r"If playback doesn't begin shortly.*?restarting your device",
        r"You're signed out.*?Videos",
        r"Tap to unmute",
        r"\b(?:Watch later|Share|Copy link|Info|Shopping)\b",
        r"More videos",
    ]
)

_NAV_HEADER_RE = re.compile(r"^#+\s+(Search|Sign|Log|Menu|Navigation|Skip|Jump).*$", re.IGNORECASE | re.MULTILINE)
_RULE_RE = re.compile(r"^[\*\-_]{3,}$", re.MULTILINE)
_URL_LINE_RE = re.compile(r"^https?://[^\s]+$", re.MULTILINE)
_DECORATION_RE = re.compile(r"^[\*\-_=\s]+$")
_PUNCTUATION_RE = re.compile(r"^[^\w\s]+$")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

# export variant
_HEADER_RE = re.compile(r"^#+\s+(.+)$", re.MULTILINE)
_EXPORT_RULE_RE = re.compile(r"^[\*\-_=]{3,}$", re.MULTILINE)
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BLOCKQUOTE_RE = re.compile(r"^>\s+(.+)$", re.MULTILINE)
_BARE_URL_RE = re.compile(r"^https?://[^\s]*$")

_EXPORT_BOILERPLATE = _compile(
    [
        r"Advertisement.*?Remove Ads",
        r"Want to remove ads\?.*?Premium Member",
        r"Error \d+ \(.*?\)!!?\d*",
        r"The page you were looking for.*?never existed",
        r"Something went wrong.*?try again",
        r"\b404\b",
        r"reCAPTCHA.*?verification",
        r"Skip to content|Skip to search|Go to.*?Home",
        r"From Wikipedia, the free encyclopedia",
        r"Try searching for what you're looking for",
        r"browse some of our favourites below",
        r"Prefer a video version.*?Watch here!",
        r"If playback doesn't begin shortly.*?restarting your device",
        r"You're signed out.*?Videos",
        r"\b(?:Watch later|Share|Copy link|Info|Shopping|Tap to unmute)\b",
        r"More videos",
    ]
)


def _strip_all(text: str, patterns: Iterable[Pattern[str]]) -> str:
    for pattern in patterns:
        text = pattern.sub("", text)
    return text


def strip_emphasis(text: str) -> str:
    for pattern, replacement in _EMPHASIS:
        text = pattern.sub(replacement, text)
    return text


def strip_links(text: str) -> str:
    """Replace ``[text](url)`` with ``text``."""
    return _LINK_RE.sub(r"\1", text)


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def hostname(url: str) -> str:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    return host or url


def _keep_line(line: str, min_length: int) -> bool:
    trimmed = line.strip()
    return (
        len(trimmed) > min_length
        and not _DECORATION_RE.match(trimmed)
        and not _PUNCTUATION_RE.match(trimmed)
    )


def clean_markdown_content(content: str) -> str:
    """Strip site chrome from scraped markdown, keeping readable prose."""

    cleaned = _IMAGE_LINKED_RE.sub("", content)
    cleaned = _IMAGE_RE.sub("", cleaned)
    cleaned = _strip_all(cleaned, _NAV_LINK_RES)

    cleaned = _strip_all(cleaned, _ERROR_PAGE)
    cleaned = _strip_all(cleaned, _ADS)
    cleaned = _strip_all(cleaned, _ENCYCLOPEDIA)
    cleaned = _strip_all(cleaned, _MENUS)
    cleaned = _strip_all(cleaned, _VIDEO)
    cleaned = _NAV_HEADER_RE.sub("", cleaned)

    # bare-URL links must go before links collapse to their text
    cleaned = _URL_LINK_RE.sub("", cleaned)
    cleaned = strip_links(cleaned)
    cleaned = strip_emphasis(cleaned)

    cleaned = _RULE_RE.sub("", cleaned)
    cleaned = _URL_LINE_RE.sub("", cleaned)

    cleaned = "\n".join(line for line in cleaned.split("\n") if _keep_line(line, 5))
    cleaned = _BLANK_RUN_RE.sub("\n\n", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    return cleaned.strip()


def _render_export_link(match: re.Match) -> str:
    link_text, url = match.group(1), match.group(2)
    lowered = link_text.lower()
    if any(word in lowered for word in EXPORT_SKIP_LINK_WORDS):
        return ""
    if link_text == url or link_text.startswith("http"):
        return url
    return f"{link_text} ({url})"


def markdown_to_plain_text(markdown: str) -> str:
    """Flatten markdown into plain text suitable for a PDF page."""

    # autolinks like <https://...> are not tags
    text = _AUTOLINK_RE.sub(r"\1", markdown)
    if _HTML_TAG_RE.search(text):
        text = BeautifulSoup(text, "html.parser").get_text()

    text = _HEADER_RE.sub(r"\1", text)
    text = _IMAGE_RE.sub("", text)
    text = _LINK_RE.sub(_render_export_link, text)
    text = strip_emphasis(text)

    text = _EXPORT_RULE_RE.sub("", text)
    text = _CODE_BLOCK_RE.sub("", text)
    text = _INLINE_CODE_RE.sub(r"\1", text)
    text = _BLOCKQUOTE_RE.sub(r"\1", text)

    text = _strip_all(text, _EXPORT_BOILERPLATE)

    lines = []
    for line in text.split("\n"):
        if not _keep_line(line, 3) or _BARE_URL_RE.match(line.strip()):
            continue
        lines.append(line)
    text = _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))
    return text.strip()


def extract_source_content(source: Mapping[str, Any]) -> str:
    """Pick the best displayable text for a search result.

    Scraped markdown wins over the search snippet, which wins over the
    page's metadata description.
    """
    markdown = source.get("markdown")
    if markdown:
        cleaned = clean_markdown_content(markdown)
        lines = []
        for line in cleaned.split("\n"):
            trimmed = line.strip()
            lowered = trimmed.lower()
            if len(trimmed) > 20 and not any(word in lowered for word in CHROME_LINE_WORDS):
                lines.append(line)
        return truncate("\n".join(lines[:6]), 1000)

    if source.get("description"):
        return source["description"]

    metadata = source.get("metadata") or {}
    if isinstance(metadata, Mapping) and metadata.get("description"):
        return metadata["description"]
    return ""
