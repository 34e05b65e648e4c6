"""
Word-level text selection and signature capture.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from ..page.models import TokenInfo


@dataclass
class SignatureCapture:
    """Everything needed to create an annotation from a selection."""

    page_number: int
    signature: Tuple[str, ...]
    text: str
    tokens: List[TokenInfo] = field(default_factory=list)


def capture_signature(tokens: List[TokenInfo]) -> Optional[SignatureCapture]:
    """
    Extract the ordered token texts of a selection.

    Args:
        tokens: Selected tokens of a single page, in reading order

    Returns:
        The capture, or None for an empty selection
    """
    if not tokens:
        return None

    # Rebuild display text with line breaks
    lines = []
    current_key = None
    for token in tokens:
        if token.line_key != current_key:
            lines.append([])
            current_key = token.line_key
        lines[-1].append(token.text)
    text = "\n".join(" ".join(words) for words in lines)

    return SignatureCapture(
        page_number=tokens[0].page_number,
        signature=tuple(token.text for token in tokens),
        text=text,
        tokens=list(tokens),
    )


class TextSelection(QObject):
    """
    Tracks the live text selection between an anchor and a focus token.

    The selection stays on the page where it started; extending it onto
    another page is ignored. Positions are kept as token indices and resolved
    against the page's current tokens, so a repaint does not invalidate them.
    """

    # Signals
    selection_changed = pyqtSignal()
    selection_cleared = pyqtSignal()

    def __init__(self, surface, parent=None):
        super().__init__(parent)
        self.surface = surface

        self.page_number: Optional[int] = None
        self.anchor_index: Optional[int] = None  # Start of selection
        self.focus_index: Optional[int] = None  # Current end of selection

        self.is_selecting: bool = False

    def start(self, token: TokenInfo) -> None:
        """Begin a new selection at a token."""
        self.clear()

        self.page_number = token.page_number
        self.anchor_index = token.index
        self.focus_index = token.index
        self.is_selecting = True
        self.selection_changed.emit()

    def extend(self, token: TokenInfo) -> None:
        """Move the focus of the selection to a token on the same page."""
        if self.anchor_index is None or token.page_number != self.page_number:
            return

        if token.index != self.focus_index:
            self.focus_index = token.index
            self.selection_changed.emit()

    def finish(self) -> None:
        """Complete the current selection operation."""
        self.is_selecting = False

    def select_token(self, token: TokenInfo) -> None:
        self._set_range(token.page_number, token.index, token.index)

    def select_line_at(self, token: TokenInfo) -> None:
        """Select the entire line containing a token."""
        layer = self.surface.layer_for(token.page_number)
        if layer is None:
            return

        line = layer.line_tokens(token)
        if line:
            self._set_range(token.page_number, line[0].index, line[-1].index)

    def select_all(self, page_number: int) -> None:
        """Select all tokens on a page."""
        tokens = self.surface.tokens_for(page_number)
        if tokens:
            self._set_range(page_number, 0, len(tokens) - 1)

    def select_rect(self, page_number: int,
                    rect: Tuple[float, float, float, float]) -> None:
        """Select the tokens between the first and last one touching a rect."""
        layer = self.surface.layer_for(page_number)
        if layer is None:
            return

        hits = layer.tokens_in_rect(rect)
        if hits:
            self._set_range(page_number, hits[0].index, hits[-1].index)
        else:
            self.clear()

    def selected_tokens(self) -> List[TokenInfo]:
        """Selected tokens of the current render, in reading order."""
        if self.anchor_index is None or self.focus_index is None:
            return []

        tokens = self.surface.tokens_for(self.page_number)
        start, end = sorted((self.anchor_index, self.focus_index))
        return tokens[start:end + 1]

    def has_selection(self) -> bool:
        return bool(self.selected_tokens())

    def capture(self) -> Optional[SignatureCapture]:
        return capture_signature(self.selected_tokens())

    def clear(self) -> None:
        """Clear all selection state."""
        had_selection = self.anchor_index is not None

        self.page_number = None
        self.anchor_index = None
        self.focus_index = None
        self.is_selecting = False

        if had_selection:
            self.selection_cleared.emit()

    def _set_range(self, page_number: int, start: int, end: int) -> None:
        self.page_number = page_number
        self.anchor_index = start
        self.focus_index = end
        self.is_selecting = False
        self.selection_changed.emit()
