"""Line-level diff and annotated merge for files changed on both sides.

The merge artifact is the union of both versions: lines only present
locally are prefixed with ``REMOVED_MARKER``, lines only present remotely
with ``ADDED_MARKER``. The same bytes are written to both sides so the
next run sees identical content.
"""

import logging
import sys
from typing import Dict, List, Sequence, Tuple

from ..errors import MergeError

logger = logging.getLogger(__name__)

DIFF_DELETE = -1
DIFF_EQUAL = 0
DIFF_INSERT = 1

REMOVED_MARKER = "－"  # FULLWIDTH HYPHEN-MINUS
ADDED_MARKER = "＋"  # FULLWIDTH PLUS SIGN
MARKERS = (REMOVED_MARKER, ADDED_MARKER)

Diff = Tuple[int, List[str]]


def split_lines(text: str) -> List[str]:
    """Split text into lines, treating a missing final newline as present."""
    if not text:
        return []
    if not text.endswith("\n"):
        text += "\n"
    return text[:-1].split("\n")


def strip_marker(line: str) -> str:
    """Remove one merge marker left at the start of a line by an earlier merge."""
    if line[:1] in MARKERS:
        return line[1:]
    return line


def _intern(lines_a: Sequence[str], lines_b: Sequence[str]) -> Tuple[str, str, List[str]]:
    """Map every distinct line to one character so the diff can work on strings."""
    line_array: List[str] = []
    line_codes: Dict[str, str] = {}

    def encode(lines: Sequence[str]) -> str:
        chars = []
        for line in lines:
            code = line_codes.get(line)
            if code is None:
                if len(line_array) > sys.maxunicode:
                    raise ValueError("too many distinct lines to diff")
                code = chr(len(line_array))
                line_array.append(line)
                line_codes[line] = code
            chars.append(code)
        return "".join(chars)

    return encode(lines_a), encode(lines_b), line_array


def _common_prefix(text_a: str, text_b: str) -> int:
    n = min(len(text_a), len(text_b))
    for i in range(n):
        if text_a[i] != text_b[i]:
            return i
    return n


def _common_suffix(text_a: str, text_b: str) -> int:
    n = min(len(text_a), len(text_b))
    for i in range(1, n + 1):
        if text_a[-i] != text_b[-i]:
            return i - 1
    return n


def _diff_chars(text_a: str, text_b: str) -> List[Tuple[int, str]]:
    if text_a == text_b:
        return [(DIFF_EQUAL, text_a)] if text_a else []

    prefix = _common_prefix(text_a, text_b)
    suffix = _common_suffix(text_a[prefix:], text_b[prefix:])
    middle_a = text_a[prefix:len(text_a) - suffix]
    middle_b = text_b[prefix:len(text_b) - suffix]

    diffs = [(DIFF_EQUAL, text_a[:prefix])]
    if not middle_a:
        diffs.append((DIFF_INSERT, middle_b))
    elif not middle_b:
        diffs.append((DIFF_DELETE, middle_a))
    elif middle_a in middle_b:
        index = middle_b.find(middle_a)
        diffs += [
            (DIFF_INSERT, middle_b[:index]),
            (DIFF_EQUAL, middle_a),
            (DIFF_INSERT, middle_b[index + len(middle_a):]),
        ]
    elif middle_b in middle_a:
        index = middle_a.find(middle_b)
        diffs += [
            (DIFF_DELETE, middle_a[:index]),
            (DIFF_EQUAL, middle_b),
            (DIFF_DELETE, middle_a[index + len(middle_b):]),
        ]
    else:
        diffs += [(DIFF_DELETE, middle_a), (DIFF_INSERT, middle_b)]
    diffs.append((DIFF_EQUAL, text_a[len(text_a) - suffix:]))

    return [(op, chars) for op, chars in diffs if chars]


def diff_lines(lines_a: Sequence[str], lines_b: Sequence[str]) -> List[Diff]:
    """Line-granularity diff of two line sequences.

    Args:
        lines_a: Lines of the first (local) version
        lines_b: Lines of the second (remote) version

    Returns:
        ``(op, lines)`` segments where op is ``DIFF_EQUAL``, ``DIFF_DELETE``
        (only in ``lines_a``) or ``DIFF_INSERT`` (only in ``lines_b``).
    """
    chars_a, chars_b, line_array = _intern(lines_a, lines_b)
    return [
        (op, [line_array[ord(code)] for code in chars])
        for op, chars in _diff_chars(chars_a, chars_b)
    ]


def render_merge(diffs: Sequence[Diff]) -> str:
    """Render diff segments as the annotated merge artifact."""
    rendered: List[str] = []
    for op, lines in diffs:
        if op == DIFF_DELETE:
            rendered.extend(REMOVED_MARKER + line for line in lines)
        elif op == DIFF_INSERT:
            rendered.extend(ADDED_MARKER + line for line in lines)
        else:
            rendered.extend(lines)
    return "".join(line + "\n" for line in rendered)


def merge_text(local_text: str, remote_text: str) -> str:
    """Merge two decoded versions of a file."""
    local_lines = [strip_marker(line) for line in split_lines(local_text)]
    remote_lines = [strip_marker(line) for line in split_lines(remote_text)]
    return render_merge(diff_lines(local_lines, remote_lines))


def merge_contents(local: bytes, remote: bytes, identity: str = "<unknown>") -> bytes:
    """Produce the merge artifact for two diverged versions of a file.

    Args:
        local: Current local bytes
        remote: Current remote bytes
        identity: File identity, used in error messages

    Returns:
        UTF-8 encoded artifact to write to both sides

    Raises:
        MergeError: If either version is not valid UTF-8 text
    """
    try:
        local_text = local.decode("utf-8")
        remote_text = remote.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MergeError(identity, f"content is not UTF-8 text ({e.reason})") from e

    try:
        merged = merge_text(local_text, remote_text)
    except ValueError as e:
        raise MergeError(identity, str(e)) from e

    logger.debug(f"Merged {identity}: {len(local)} + {len(remote)} bytes -> {len(merged)} chars")
    return merged.encode("utf-8")
