"""Off-platform contact detection for chat messages.

``analyze`` is a pure function: it keeps no state, performs no I/O and only
reads module-level precompiled patterns, so it is safe to call from any
number of threads and to re-run for audits.

Each category owns an ordered list of matchers. The first matcher that finds
anything supplies all of that category's matches; categories are scanned
independently and their matches unioned. The aggregate severity is the
maximum over matched categories.

Phone detection is deliberately permissive. Any run of 7 to 15 digits with
optional country code and separators counts, so dates and large prices
written with separators are flagged too. A missed phone number defeats the
whole feature, a false positive only costs the sender a rephrase.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterator

from trustsafety.moderation.models import (
    DetectionResult,
    PatternCategory,
    PatternMatch,
    Severity,
)

logger = logging.getLogger("trustsafety.moderation")

Matcher = Callable[[str], list[PatternMatch]]

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_PHONE_MIN_DIGITS = 7
_PHONE_MAX_DIGITS = 15  # E.164

# Digit groups joined by a single separator (space, dot or hyphen, optionally
# padded). Word characters on either side disqualify the run, which keeps
# order ids such as ORD123456789 out.
_PHONE_SEP = r"(?:[ \t]*[.\-][ \t]*|[ \t]+)"
_PHONE_GROUP = r"\(?[0-9]+\)?"
_PHONE_CANDIDATE = re.compile(
    rf"(?<!\w)\+?{_PHONE_GROUP}(?:{_PHONE_SEP}{_PHONE_GROUP})*(?!\w)"
)
_DIGIT_RUN = re.compile(r"[0-9]+")

_EMAIL_PATTERN = re.compile(
    r"(?<![\w.%+-])[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}\b"
)

_URL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bhttps?://[^\s<>\"']+", re.IGNORECASE),
    re.compile(r"(?<![\w.])www\.[^\s<>\"']+", re.IGNORECASE),
]

_MESSAGING_APP_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(?:wa\.me|t\.me|telegram\.me)/[\w.-]+", re.IGNORECASE),
    re.compile(r"\b(?:whats\s?app|whats|wpp|zap(?:zap)?)\b", re.IGNORECASE),
    re.compile(r"\b(?:telegram|telegrm)\b", re.IGNORECASE),
    re.compile(r"\b(?:viber|wechat|skype|messenger|signal\s+app)\b", re.IGNORECASE),
]

_CONTACT_REQUEST_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        # English
        r"\b(?:call|text|phone|ring|email)\s+me\b",
        r"\bgive\s+me\s+your\s+(?:number|phone|contact|email)\b",
        r"\bsend\s+me\s+your\s+(?:number|phone|contact|email)\b",
        r"\bcontact\s+me\s+(?:directly|outside|privately)\b",
        r"\b(?:outside|off)\s+(?:of\s+)?(?:the\s+)?(?:app|platform)\b",
        # Portuguese
        r"\b(?:liga|ligue|chama|contacta|contata|manda)[\s-]*me\b",
        r"\bme\s+(?:liga|ligue|chama|contacta|contata|manda\s+mensagem)\b",
        r"\b(?:meu|minha|teu|tua|seu|sua)\s+(?:número|numero|telefone|contacto|contato|e-?mail)\b",
        r"\b(?:passa|manda|envia|dá|da)[\s-]*(?:me\s+)?(?:o\s+)?(?:teu|seu)\s+(?:número|numero|contacto|contato)\b",
        r"\bfora\s+d[ao]\s+(?:plataforma|app|aplicativo|aplicação)\b",
        r"\bfala\s+comigo\s+(?:no|na|pelo|pela)\b",
    ]
]

_HANDLE_PATTERN = re.compile(r"(?<![\w.@])@[A-Za-z0-9_](?:[A-Za-z0-9_.]{0,28}[A-Za-z0-9_])?")
_PLATFORM_KEYWORD = re.compile(
    r"\b(?:instagram|insta|ig|facebook|fb|tiktok|twitter|snapchat|snap|linkedin)\b",
    re.IGNORECASE,
)
_PROFILE_URL_PATTERN = re.compile(
    r"\b(?:instagram\.com|facebook\.com|fb\.com|tiktok\.com|twitter\.com|linkedin\.com/in)/[\w.@-]+",
    re.IGNORECASE,
)

_TRAILING_PUNCTUATION = ".,;:!?)"

_REDACTIONS: dict[PatternCategory, str] = {
    PatternCategory.phone_number: "[phone removed]",
    PatternCategory.email_address: "[email removed]",
}


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def _regex_matcher(category: PatternCategory, pattern: re.Pattern[str]) -> Matcher:
    def match(text: str) -> list[PatternMatch]:
        found = []
        for m in pattern.finditer(text):
            start, end = m.start(), m.end()
            while end > start and text[end - 1] in _TRAILING_PUNCTUATION:
                end -= 1
            found.append(PatternMatch(category, text[start:end], start, end))
        return found

    return match


def _phone_spans(text: str) -> Iterator[tuple[int, int]]:
    for m in _PHONE_CANDIDATE.finditer(text):
        groups = list(_DIGIT_RUN.finditer(m.group(0)))
        total = sum(len(g.group(0)) for g in groups)
        if _PHONE_MIN_DIGITS <= total <= _PHONE_MAX_DIGITS:
            yield m.start(), m.end()
            continue
        if total < _PHONE_MIN_DIGITS:
            continue

        # Too long for one number: split greedily on separators so that two
        # numbers written next to each other are both reported.
        first = None
        last = None
        count = 0
        for g in groups:
            size = len(g.group(0))
            if count and count + size > _PHONE_MAX_DIGITS:
                if count >= _PHONE_MIN_DIGITS:
                    yield m.start() + first.start(), m.start() + last.end()
                first, count = None, 0
            if size > _PHONE_MAX_DIGITS:
                continue
            if first is None:
                first = g
            last = g
            count += size
        if first is not None and count >= _PHONE_MIN_DIGITS:
            yield m.start() + first.start(), m.start() + last.end()


def _match_phone(text: str) -> list[PatternMatch]:
    return [
        PatternMatch(PatternCategory.phone_number, text[s:e], s, e)
        for s, e in _phone_spans(text)
    ]


def _match_handle_with_platform(text: str) -> list[PatternMatch]:
    if not _PLATFORM_KEYWORD.search(text):
        return []
    return [
        PatternMatch(PatternCategory.social_handle, m.group(0), m.start(), m.end())
        for m in _HANDLE_PATTERN.finditer(text)
    ]


_CATEGORY_MATCHERS: list[tuple[PatternCategory, list[Matcher]]] = [
    (PatternCategory.phone_number, [_match_phone]),
    (
        PatternCategory.email_address,
        [_regex_matcher(PatternCategory.email_address, _EMAIL_PATTERN)],
    ),
    (
        PatternCategory.raw_url,
        [_regex_matcher(PatternCategory.raw_url, p) for p in _URL_PATTERNS],
    ),
    (
        PatternCategory.messaging_app,
        [_regex_matcher(PatternCategory.messaging_app, p) for p in _MESSAGING_APP_PATTERNS],
    ),
    (
        PatternCategory.contact_request,
        [_regex_matcher(PatternCategory.contact_request, p) for p in _CONTACT_REQUEST_PATTERNS],
    ),
    (
        PatternCategory.social_handle,
        [
            _match_handle_with_platform,
            _regex_matcher(PatternCategory.social_handle, _PROFILE_URL_PATTERN),
        ],
    ),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _scan(text: str) -> list[PatternMatch]:
    matches: list[PatternMatch] = []
    for _category, matchers in _CATEGORY_MATCHERS:
        for matcher in matchers:
            found = matcher(text)
            if found:
                matches.extend(found)
                break
    return matches


def analyze(text: str) -> DetectionResult:
    """Scan *text* for off-platform contact attempts.

    Any unexpected failure inside the scan fails closed: the result is
    reported as high severity so the message is blocked, never delivered
    unchecked.
    """
    if not isinstance(text, str):
        raise TypeError(f"analyze() expects str, got {type(text).__name__}")
    if not text.strip():
        return DetectionResult()

    try:
        matches = _scan(text)
    except Exception:
        logger.exception("Contact scan failed; blocking message")
        return DetectionResult(severity=Severity.high, failed_closed=True)

    severity = Severity.none
    for m in matches:
        if m.severity.rank > severity.rank:
            severity = m.severity
    return DetectionResult(matches=matches, severity=severity)


def redact(text: str, result: DetectionResult | None = None) -> str:
    """Replace phone numbers and email addresses in *text* with placeholders."""
    if result is None:
        result = analyze(text)
    spans = sorted(
        (m for m in result.matches if m.category in _REDACTIONS),
        key=lambda m: (m.start, m.end),
        reverse=True,
    )
    redacted = text
    covered_from = len(text) + 1
    for m in spans:
        if m.end > covered_from:
            continue  # overlaps a span already replaced
        redacted = redacted[: m.start] + _REDACTIONS[m.category] + redacted[m.end :]
        covered_from = m.start
    return redacted
