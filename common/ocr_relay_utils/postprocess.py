import re
from typing import Iterable, Optional

NO_TEXT_SENTINEL = "No text could be extracted"
REGION_SEPARATOR = "\n\n"


def correct(text: str) -> str:
    """
    Tidy one OCR region: unify line endings, drop trailing spaces on each
    line and squeeze runs of blank lines to a single blank line.
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+\n", "\n", text)   # spaces before a newline
    text = re.sub(r"\n{3,}", "\n\n", text)   # more than one blank line
    return text.strip()


def join_regions(texts: Iterable[Optional[str]]) -> str:
    """
    Concatenate the parsed regions returned by the provider.

    Empty regions are skipped. When nothing is left a sentinel is returned
    instead of "" so callers can tell "no text found" apart from "no answer".
    """
    cleaned = [correct(t) for t in texts if t]
    joined = REGION_SEPARATOR.join(t for t in cleaned if t).strip()
    return joined or NO_TEXT_SENTINEL
