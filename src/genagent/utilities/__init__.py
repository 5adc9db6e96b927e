from datetime import datetime, timezone
import json
from pathlib import Path
import textwrap

from .log_helpers import LOG_FMT, basic_log_config
from ..types_.base import JSON

__all__ = [
    "LOG_FMT",
    "basic_log_config",
    "now_utc",
    "detect_encoding",
    "read_text",
    "format_json",
]


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def detect_encoding(rawdata: bytes) -> str:
    """Detect the encoding of a byte string."""
    import chardet

    encoding = chardet.detect(rawdata)
    return encoding["encoding"] or "utf-8"


def read_text(path: str | Path) -> str:
    """Read a text file of unknown encoding."""
    rawdata = Path(path).expanduser().read_bytes()
    return rawdata.decode(detect_encoding(rawdata))


def format_json(data: JSON, width: int = 100, indent: int = 2, level: int = 0) -> str:
    """Format JSON data with proper indentation and line wrapping."""
    prefix = " " * (level * indent)

    if isinstance(data, dict):
        if not data:
            return "{}"

        lines = ["{"]
        items = list(data.items())
        for i, (key, value) in enumerate(items):
            key_prefix = f'{prefix}  "{key}": '
            if isinstance(value, str):
                formatted_value = json.dumps(textwrap.shorten(value, width=width, placeholder="..."))
            else:
                formatted_value = format_json(value, width=width, indent=indent, level=level + 1)

            comma = "," if i < len(items) - 1 else ""
            lines.append(f"{key_prefix}{formatted_value}{comma}")

        lines.append(prefix + "}")
        return "\n".join(lines)

    elif isinstance(data, list):
        if not data:
            return "[]"

        lines = ["["]
        for i, item in enumerate(data):
            formatted_item = format_json(item, width, indent, level + 1)
            comma = "," if i < len(data) - 1 else ""
            lines.append(f"{prefix}  {formatted_item}{comma}")

        lines.append(prefix + "]")
        return "\n".join(lines)

    else:
        return json.dumps(data, default=str)
