"""
Line reversal for freshly downloaded chunks.

Operates on raw bytes so a multi-byte character that straddles a chunk
boundary is carried through untouched instead of being mangled by a decode.
"""

from typing import Tuple

NEWLINE = b"\n"


def reverse_chunk(chunk: bytes) -> Tuple[bytes, bool]:
    """
    Reverse the line order of a chunk.

    The trailing-newline state of the chunk is preserved: a chunk ending in
    a newline produces a block ending in a newline, and an open last line
    stays open (it becomes the first line of the block, and the block's
    last line is the chunk's first line without a delimiter).

    Args:
        chunk: Raw bytes, oldest line first

    Returns:
        Tuple of (reversed bytes, whether the chunk ended with a newline)

    Examples:
        >>> reverse_chunk(b"a\\nb\\nc\\n")
        (b'c\\nb\\na\\n', True)
        >>> reverse_chunk(b"a\\nb\\nc")
        (b'c\\nb\\na', False)
    """
    if not chunk:
        return b"", False

    ended_with_newline = chunk.endswith(NEWLINE)
    lines = chunk.split(NEWLINE)

    # A terminated chunk splits into one extra empty element; it marks the
    # final delimiter, not a line.
    if ended_with_newline:
        lines.pop()

    lines.reverse()
    reversed_block = NEWLINE.join(lines)

    if ended_with_newline:
        reversed_block += NEWLINE

    return reversed_block, ended_with_newline
