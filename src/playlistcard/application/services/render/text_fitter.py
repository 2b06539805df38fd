"""Ellipsis truncation of a single line of text to a pixel width budget."""

from collections.abc import Callable

ELLIPSIS = "..."

MeasureFn = Callable[[str], float]


# Hey future me - this is the "Supercalifragilistic..." logic. Strip one character at a time
# until prefix + "..." fits. Linear, but names are short and it keeps the exact behaviour of a
# canvas measureText() loop: the result is the LONGEST prefix that fits, never a shorter one.
# If nothing fits (budget narrower than "..." itself) the loop stops at the empty prefix and you
# get just "...". Running it again on its own output returns the output unchanged.
def fit_text(
    text: str,
    measure: MeasureFn,
    max_width: float,
    ellipsis: str = ELLIPSIS,
) -> str:
    """Truncate text with an ellipsis so it measures at most max_width.

    Args:
        text: Text to fit
        measure: Returns the rendered width of a string under the active font
        max_width: Pixel budget
        ellipsis: Suffix appended when truncating

    Returns:
        text unchanged if it fits, otherwise the longest fitting prefix + ellipsis
    """
    if measure(text) <= max_width:
        return text

    prefix = text
    while prefix and measure(prefix + ellipsis) > max_width:
        prefix = prefix[:-1]
    return prefix + ellipsis
