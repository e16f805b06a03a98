"""Extraction of candidate ``@handle`` tokens from free text.

A handle is ``@`` followed by one or more word characters. Any non-word
character (space, punctuation, end of text) ends it, so ``"Hey, @alice!"``
yields ``alice`` and ``"(@bob)"`` yields ``bob``. Nothing is required before
the ``@``: ``alice@example.com`` yields ``example``, which simply fails to
resolve to a family member.

A user's own handle is derived with the same word-character rule, so it is
always something the parser can produce: "Mary-Jane Watson" answers to
``@mary`` (which is also what ``@Mary-Jane`` extracts), not ``@mary-jane``.
"""

import re

HANDLE_PATTERN = re.compile(r"@(\w+)")
WORD_PATTERN = re.compile(r"\w+")


def handle_for_name(name: str) -> str:
    """Return the handle a display name answers to, or ``""`` if it has none.

    The handle is the first run of word characters in the first
    whitespace-separated token, case-folded.
    """
    parts = name.split()
    if not parts:
        return ""
    match = WORD_PATTERN.search(parts[0])
    return match.group(0).casefold() if match else ""


def extract_handles(text: str | None) -> tuple[str, ...]:
    """Return the distinct lower-cased handles in ``text``, in order of first appearance.

    Args:
        text: Field content; ``None`` and blank strings contain no handles.

    Returns:
        Tuple of handles without the leading ``@``.
    """
    if not text or not text.strip():
        return ()
    seen: set[str] = set()
    out: list[str] = []
    for match in HANDLE_PATTERN.finditer(text):
        handle = match.group(1).casefold()
        if handle not in seen:
            seen.add(handle)
            out.append(handle)
    return tuple(out)
