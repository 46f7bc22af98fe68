import re

_TAG = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    return _TAG.sub("", text)


def clean_excerpt(text: str, max_chars: int = 100) -> str:
    """Plain-text excerpt of a question, used for avoid/remedial topics."""
    if not isinstance(text, str):
        return ""
    text = strip_html(text)

    # Collapse whitespace and newlines into single spaces
    text = re.sub(r"\s+", " ", text)

    return text.strip()[:max_chars].strip()
