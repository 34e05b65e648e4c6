from dataclasses import dataclass
from typing import NamedTuple, Tuple


class TokenHandle(NamedTuple):
    """
    Identity of one rendered token.

    Only valid for the render generation that produced it; a repaint of the
    page yields new handles even for identical text.
    """
    page_number: int
    generation: int
    index: int


@dataclass
class TokenInfo:
    """A rendered word with its screen geometry."""

    text: str
    bbox: Tuple[float, float, float, float]  # x0, y0, x1, y1 in screen pixels
    page_number: int  # 1-based
    index: int  # position in the page's token sequence
    generation: int  # render pass that produced this token

    # Layout position reported by the renderer
    block_index: int = 0
    line_index: int = 0
    word_index: int = 0

    @property
    def handle(self) -> TokenHandle:
        return TokenHandle(self.page_number, self.generation, self.index)

    @property
    def line_key(self) -> Tuple[int, int]:
        return self.block_index, self.line_index

    def contains_point(self, x: float, y: float) -> bool:
        """Check if point is within token bounds."""
        return self.bbox[0] <= x <= self.bbox[2] and self.bbox[1] <= y <= self.bbox[3]
