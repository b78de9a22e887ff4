"""Placeholder locator — finds {{name}} tokens and their index ranges.

Read-only traversal over a fetched document body. A token is only found
when it sits inside a single text run; a token split across runs with
different styling is invisible here (and to replaceAllText it is not).
"""

import re
from collections.abc import Iterable

from appraisal_docs.core.types import TextRange
from appraisal_docs.documents.index import iter_text_runs, utf16_len

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


def placeholder_token(name: str) -> str:
    """'gallery' → '{{gallery}}'"""
    return f"{{{{{name}}}}}"


def _occurrences(content: str, token: str) -> Iterable[int]:
    position = 0
    while True:
        found = content.find(token, position)
        if found == -1:
            return
        yield found
        position = found + len(token)


def locate_placeholders(
    content: list[dict],
    names: Iterable[str] | None = None,
) -> dict[str, list[TextRange]]:
    """Map placeholder name → ranges of every full {{name}} token.

    Args:
        content: Body content (or any nested content list) of a document.
        names: Names to look for. None finds any {{...}} token.

    Returns:
        Ranges in document order. Requested names that never occur map to
        an empty list.
    """
    found: dict[str, list[TextRange]] = {}
    wanted = None
    if names is not None:
        wanted = list(dict.fromkeys(names))
        found = {name: [] for name in wanted}

    for run in iter_text_runs(content):
        if "{{" not in run.content:
            continue
        if wanted is None:
            for match in PLACEHOLDER_PATTERN.finditer(run.content):
                start = run.start + utf16_len(run.content[:match.start()])
                found.setdefault(match.group(1), []).append(
                    TextRange(start, start + utf16_len(match.group(0)))
                )
            continue
        for name in wanted:
            token = placeholder_token(name)
            for pos in _occurrences(run.content, token):
                start = run.start + utf16_len(run.content[:pos])
                found[name].append(TextRange(start, start + utf16_len(token)))

    return found


def find_placeholder(content: list[dict], name: str) -> TextRange | None:
    """First occurrence of {{name}}, or None."""
    ranges = locate_placeholders(content, [name])[name]
    return ranges[0] if ranges else None


def find_title_run(content: list[dict], title: str) -> TextRange | None:
    """Range of the first text run whose trimmed text contains the title, ignoring case."""
    pattern = re.compile(re.escape(title.strip()), re.IGNORECASE)
    for run in iter_text_runs(content):
        if pattern.search(run.content.strip()):
            return run.range
    return None
