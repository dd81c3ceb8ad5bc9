from __future__ import annotations

import re
from typing import List, Optional, Tuple

from libs.core.models import AnswerPoint

_BOLD_HEADING_RE = re.compile(r"^[ \t]*\*\*(?P<title>[^*\n]+?)\*\*[ \t]*:?[ \t]*$", re.MULTILINE)
_POINTS_RE = re.compile(
    r"\(\s*(?:approx\.?|approximately|~)?\s*(?P<points>\d+)\s*(?:points?|pts?)\s*\)",
    re.IGNORECASE,
)
_TRAILING_NOTE_RE = re.compile(
    r"\n[ \t]*\n[ \t]*(?:\*\*)?Note(?:\*\*)?[ \t]*:(?:\*\*)?[ \t]*(?P<note>.*)\Z",
    re.IGNORECASE | re.DOTALL,
)
_LEADING_NOTE_RE = re.compile(r"^(?:\*\*)?Note(?:\*\*)?\s*:(?:\*\*)?\s*", re.IGNORECASE)
_POINT_SEPARATOR_RE = re.compile(r"\n[ \t]*\n[ \t]*\n")
_PARAGRAPH_SEPARATOR_RE = re.compile(r"\n[ \t]*\n")


def split_model_answer(text: Optional[str]) -> List[AnswerPoint]:
    """Split a model answer into titled points for display.

    Two layouts are understood: bold section titles with an indicative point
    value (``**Title (approx. 3 points)**``), and plain "title line + body"
    points separated by triple newlines. A trailing ``Note:`` paragraph becomes
    its own point.
    """
    if not isinstance(text, str) or not text.strip():
        return []
    normalized = text.replace("\r\n", "\n").strip()
    headings = list(_BOLD_HEADING_RE.finditer(normalized))
    if headings:
        return _split_on_headings(normalized, headings)
    return _split_on_separators(normalized)


def _split_on_headings(text: str, headings: List[re.Match[str]]) -> List[AnswerPoint]:
    points: List[AnswerPoint] = []
    preamble = text[: headings[0].start()].strip()
    if preamble:
        points.append(AnswerPoint(title="Overview", body=preamble))
    for idx, match in enumerate(headings):
        end = headings[idx + 1].start() if idx + 1 < len(headings) else len(text)
        body = text[match.end() : end].strip()
        title = match.group("title")
        if title.strip().rstrip(":").strip().lower() == "note":
            points.append(AnswerPoint(title="Note", body=body))
            continue
        body, note = _split_trailing_note(body)
        points.append(_titled_point(title, body))
        if note is not None:
            points.append(AnswerPoint(title="Note", body=note))
    return points


def _split_on_separators(text: str) -> List[AnswerPoint]:
    chunks = _POINT_SEPARATOR_RE.split(text)
    if len(chunks) == 1:
        chunks = _PARAGRAPH_SEPARATOR_RE.split(text)
    points: List[AnswerPoint] = []
    for chunk in chunks:
        chunk = chunk.strip()
        if not chunk:
            continue
        if _LEADING_NOTE_RE.match(chunk):
            points.append(AnswerPoint(title="Note", body=_LEADING_NOTE_RE.sub("", chunk, count=1)))
            continue
        first_line, _, rest = chunk.partition("\n")
        points.append(_titled_point(first_line.lstrip("-*# \t"), rest.strip()))
    return points


def _split_trailing_note(body: str) -> Tuple[str, Optional[str]]:
    match = _TRAILING_NOTE_RE.search(body)
    if match is None:
        return body, None
    return body[: match.start()].strip(), match.group("note").strip()


def _titled_point(title: str, body: str) -> AnswerPoint:
    points: Optional[int] = None
    match = _POINTS_RE.search(title)
    if match is not None:
        points = int(match.group("points"))
        title = (title[: match.start()] + title[match.end() :]).strip()
    return AnswerPoint(title=title.strip().rstrip(":").strip(), body=body, points=points)
