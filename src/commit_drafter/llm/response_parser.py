"""
Parsing of LLM replies into :class:`CommitTemplate` objects.

Two reply shapes are understood. The system prompt asks for a JSON
object, which is used when present (code fences and surrounding prose
are tolerated). Otherwise the reply is read as a plain commit message:
trailing assistant commentary is cut off, the first line is parsed as
``type(scope): subject`` and the rest becomes the details block.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from commit_drafter.llm.providers import strip_thinking_tags
from commit_drafter.templates.manager import CommitTemplate


class ResponseParseError(ValueError):
    """Raised when a reply contains no usable commit message."""

    pass


# Lines that start trailing commentary by the assistant.
_MARKER_NAMES = ("claude", "assistant", "ai", "chatgpt", "gpt", "gemini")
_MARKER_PREFIXES = ("claude:", "assistant:", "ai:", "chatgpt:", "gpt:", "gemini:", "explanation:")

_HEADER_RE = re.compile(r"^(?P<type>[A-Za-z][\w-]*)(?:\((?P<scope>[^()]*)\))?(?P<bang>!)?$")
_ISSUE_RE = re.compile(r"^(?:fixes|closes|resolves|refs?)\b[:\s]", re.IGNORECASE)
_BREAKING_PREFIXES = ("BREAKING CHANGE:", "BREAKING-CHANGE:")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_marker(line: str) -> bool:
    lowered = line.strip().lower()
    if not lowered:
        return False
    return lowered in _MARKER_NAMES or lowered.startswith(_MARKER_PREFIXES)


def _try_json(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except ValueError:
        return None
    if not isinstance(data, dict) or not _clean(data.get("subject")):
        return None
    return data


def _from_json(data: Dict[str, Any]) -> CommitTemplate:
    details = data.get("details")
    if isinstance(details, list):
        details = "\n".join(str(item) for item in details)
    return CommitTemplate(
        type=(_clean(data.get("type")) or "").lower(),
        subject=_clean(data.get("subject")) or "",
        details=_clean(details),
        issues=_clean(data.get("issues")),
        breaking=_clean(data.get("breaking")),
        scope=_clean(data.get("scope")),
    )


def parse_header(line: str) -> Dict[str, Optional[str]]:
    """Split a ``type(scope)!: subject`` line.

    A line without a colon, or whose part before the colon does not look
    like a type, is returned as subject with an empty type.
    """
    line = line.strip()
    head, sep, rest = line.partition(":")
    match = _HEADER_RE.match(head.strip()) if sep else None
    if match is None:
        return {"type": "", "scope": None, "subject": line, "breaking": None}
    return {
        "type": match.group("type").lower(),
        "scope": _clean(match.group("scope")),
        "subject": rest.strip(),
        "breaking": rest.strip() if match.group("bang") else None,
    }


def _from_text(text: str) -> CommitTemplate:
    lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
    for idx, line in enumerate(lines):
        if _is_marker(line):
            lines = lines[:idx]
            break

    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        raise ResponseParseError("Empty response")

    header = parse_header(lines[0])
    if not header["subject"]:
        raise ResponseParseError("Response has no subject line")

    body = lines[1:]
    while body and not body[0].strip():
        body.pop(0)

    detail_lines: List[str] = []
    issues: List[str] = []
    breaking = header["breaking"]
    for line in body:
        stripped = line.strip()
        if stripped.startswith(_BREAKING_PREFIXES):
            breaking = stripped.split(":", 1)[1].strip()
        elif _ISSUE_RE.match(stripped):
            issues.append(stripped)
        else:
            detail_lines.append(line.rstrip())

    return CommitTemplate(
        type=header["type"] or "",
        subject=header["subject"] or "",
        details=_clean("\n".join(detail_lines)),
        issues=_clean(", ".join(issues)),
        breaking=_clean(breaking),
        scope=header["scope"],
    )


def parse_commit_response(text: str) -> CommitTemplate:
    """Parse an LLM reply into a :class:`CommitTemplate`.

    Raises
    ------
    ResponseParseError
        If the reply is empty or has no subject.
    """
    cleaned = strip_thinking_tags(text or "")
    if not cleaned:
        raise ResponseParseError("Empty response")
    data = _try_json(cleaned)
    if data is not None:
        return _from_json(data)
    return _from_text(cleaned)
