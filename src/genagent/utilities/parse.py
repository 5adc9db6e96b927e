import logging
from typing import Iterator

logger = logging.getLogger(__name__)


def find_closing(text: str, start: int) -> int | None:
    """Return the index just past the delimiter that closes ``text[start]``.

    Delimiters that appear inside JSON string literals (including escaped quotes) are ignored.
    Returns None if the structure is never closed.
    """
    open_char = text[start]
    close_char = "]" if open_char == "[" else "}"

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def extract_json(text: str) -> str:
    """Identify json from a text blob by matching '[]' or '{}'.

    Warning: This will identify the first json structure!
    """
    # check for markdown indicator; if present, start there
    md_json_idx = text.find("```json")
    if md_json_idx != -1:
        text = text[md_json_idx:]

    # search for json delimiter pairs
    left_bracket_idx = text.find("[")
    left_brace_idx = text.find("{")

    indices = [idx for idx in (left_bracket_idx, left_brace_idx) if idx != -1]
    start_idx = min(indices) if indices else None

    # If no delimiter found, return the original text
    if start_idx is None:
        return text

    end_idx = find_closing(text, start_idx)
    if end_idx is None:
        return text  # In case of unbalanced JSON, return the original text
    return text[start_idx:end_idx]


def iter_json_objects(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` spans of every brace-balanced ``{...}`` block, in order of their opening brace.

    Nested blocks are yielded too, after their parent.
    Braces inside JSON string literals of an open block are ignored; unclosed braces yield nothing.
    The text is scanned once.
    """
    spans: list[tuple[int, int]] = []
    open_braces: list[int] = []
    in_string = False
    escaped = False
    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == "{":
            open_braces.append(i)
        elif char == "}" and open_braces:
            spans.append((open_braces.pop(), i + 1))
        elif char == '"' and open_braces:
            in_string = True

    if open_braces:
        logger.debug(f"{len(open_braces)} unbalanced object(s), first at position {open_braces[0]}")
    yield from sorted(spans)
