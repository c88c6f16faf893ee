"""
Paginated reads from the reversed (newest-first) file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Page:
    """
    One page of newest-first lines.

    Attributes:
        lines: Lines on this page, newest first
        total_lines: Number of lines in the whole reversed file
        has_more: Whether a later page has lines
        page: 1-indexed page number
        page_size: Requested page size
    """
    lines: List[str] = field(default_factory=list)
    total_lines: int = 0
    has_more: bool = False
    page: int = 1
    page_size: int = 100

    def to_dict(self) -> Dict[str, Any]:
        """Camel-cased form served over HTTP."""
        return {
            "lines": self.lines,
            "totalLines": self.total_lines,
            "hasMore": self.has_more,
            "page": self.page,
            "pageSize": self.page_size,
        }


def split_lines(content: str) -> List[str]:
    """
    Split reversed content into lines.

    A single trailing empty element (produced by a final newline) is
    dropped; empty lines anywhere else are kept.
    """
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_lines(path: Union[str, Path]) -> List[str]:
    """
    Read all lines of the reversed file.

    Args:
        path: Reversed file path

    Returns:
        Lines newest first, empty if the file does not exist
    """
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError:
        logger.debug("Reversed file does not exist", path=str(path))
        return []

    return split_lines(raw.decode("utf-8", errors="replace"))


def read_page(path: Union[str, Path], page: int = 1, page_size: int = 100) -> Page:
    """
    Read one page of the reversed file.

    Args:
        path: Reversed file path
        page: 1-indexed page number
        page_size: Lines per page

    Returns:
        The requested page

    Raises:
        ValueError: If page or page_size is below 1
    """
    if page < 1:
        raise ValueError(f"Page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"Page size must be >= 1, got {page_size}")

    lines = read_lines(path)
    start = (page - 1) * page_size
    end = page * page_size

    return Page(
        lines=lines[start:end],
        total_lines=len(lines),
        has_more=end < len(lines),
        page=page,
        page_size=page_size,
    )
