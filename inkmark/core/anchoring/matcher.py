"""
Locating annotation signatures in freshly rendered tokens.
"""
from typing import Optional, Sequence

from ..annotations.models import Annotation
from ..page.models import TokenInfo
from .styles import StyleResolver
from .tag_table import TagTable


def locate(signature: Sequence[str], tokens: Sequence[str]) -> Optional[range]:
    """
    Find the first contiguous run of tokens equal to the signature.

    Duplicate phrases always resolve to the earliest occurrence.

    Args:
        signature: Token texts captured when the annotation was created
        tokens: Token texts of the current render, in reading order

    Returns:
        range(i, i + len(signature)) of the first match, or None
    """
    size = len(signature)
    if size == 0 or size > len(tokens):
        return None

    first = signature[0]
    for i in range(len(tokens) - size + 1):
        if tokens[i] != first:
            continue
        if all(tokens[i + k] == signature[k] for k in range(1, size)):
            return range(i, i + size)
    return None


class AnchorMatcher:
    """Matches annotations against rendered tokens and tags the result."""

    def __init__(self, tag_table: TagTable, styles: StyleResolver):
        self.tag_table = tag_table
        self.styles = styles

    def anchor(self, annotation: Annotation,
               tokens: Sequence[TokenInfo]) -> Optional[range]:
        """
        Locate an annotation and tag the matched tokens with its base style.

        Args:
            annotation: Annotation to place
            tokens: Current tokens of the annotation's page

        Returns:
            Matched index range, or None if the signature is not present
        """
        match = locate(annotation.signature, [token.text for token in tokens])
        if match is None:
            return None

        self.tag_table.tag_range(
            annotation.id,
            annotation.annotation_type,
            tokens[match.start:match.stop],
            self.styles.base_style(annotation),
        )
        return match
