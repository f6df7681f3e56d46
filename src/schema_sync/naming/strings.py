"""String helpers used by naming strategies.

All functions are pure and deterministic.
"""

import hashlib
import re

_ABC_PATTERN = re.compile(r"([A-Z])([A-Z])([a-z])")
_LOWER_UPPER_PATTERN = re.compile(r"([a-z0-9])([A-Z])")
_CAMEL_PATTERN = re.compile(r"^([A-Z])|[\s\-_](\w)")
_TITLE_PATTERN = re.compile(r"\w\S*")
_TERM_PATTERN = re.compile(r"([a-z\xe0-\xff])([A-Z\xc0-\xdf])")


def sha1(value: str) -> str:
    """Hex sha1 digest of *value*."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


def snake_case(value: str) -> str:
    """Convert ``PostCategory`` / ``postCategory`` to ``post_category``.

    Example:
        >>> snake_case("HTMLPage")
        'html_page'
    """
    value = _ABC_PATTERN.sub(r"\1_\2\3", value)
    value = _LOWER_UPPER_PATTERN.sub(r"\1_\2", value)
    return value.lower()


def camel_case(value: str, first_capital: bool = False) -> str:
    """Convert ``post_category`` to ``postCategory``.

    Example:
        >>> camel_case("user_id")
        'userId'
    """
    if first_capital:
        value = " " + value

    def replace(match: re.Match) -> str:
        if match.group(2):
            return match.group(2).upper()
        return match.group(1).lower()

    return _CAMEL_PATTERN.sub(replace, value)


def title_case(value: str) -> str:
    """Capitalize each word and lowercase the rest (``streetName`` -> ``Streetname``)."""
    return _TITLE_PATTERN.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), value)


def shorten(
    value: str,
    separator: str = "__",
    segment_length: int = 4,
    term_length: int = 2,
) -> str:
    """Shorten every *separator*-delimited segment of *value*.

    Camel-cased segments keep *term_length* characters per term
    (``OrderItemList`` -> ``OrItLi``), plain segments keep the first
    *segment_length* characters (``company`` -> ``comp``).
    """
    short_segments = []
    for segment in value.split(separator):
        terms = _TERM_PATTERN.sub(r"\1 \2", segment).split(" ")
        length = term_length if len(terms) > 1 else segment_length
        short_segments.append("".join(term[:length] for term in terms))
    return separator.join(short_segments)


def shorten_identifier(value: str, max_length: int) -> str:
    """Fit a generated identifier into *max_length* characters.

    Applies :func:`shorten` with ``_`` separators first; when that is still too
    long the name is cut and suffixed with an 8-character hash of the full
    original so the same input always yields the same output.  A *max_length*
    of zero or less means the dialect has no limit.
    """
    if max_length <= 0 or len(value) <= max_length:
        return value

    shortened = shorten(value, separator="_", segment_length=3)
    if len(shortened) <= max_length:
        return shortened

    suffix = sha1(value)[:8]
    return f"{shortened[: max_length - len(suffix) - 1]}_{suffix}"
