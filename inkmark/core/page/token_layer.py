"""
Word-level token extraction and hit testing for a rendered page.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import fitz

from .models import TokenInfo

logger = logging.getLogger(__name__)

# PyMuPDF word tuple: x0, y0, x1, y1, text, block_no, line_no, word_no
WordTuple = Tuple[float, float, float, float, str, int, int, int]


class PageTokenLayer:
    """
    Ordered tokens of one render pass of a page.

    Provides spatial lookup for clicks and rectangle selections. A new layer
    is built on every render; layers are never patched in place.
    """

    def __init__(self, tokens: List[TokenInfo], page_number: int, generation: int):
        self.tokens = tokens
        self.page_number = page_number
        self.generation = generation
        self._token_grid: Dict[Tuple[int, int], List[TokenInfo]] = {}
        self._grid_size = 50  # Grid cell size in screen pixels

        self._build_spatial_index()

    @classmethod
    def from_page(cls, page: fitz.Page, page_number: int, zoom: float = 1.0,
                  generation: int = 0) -> "PageTokenLayer":
        """
        Extract tokens from a PyMuPDF page.

        Args:
            page: Loaded page
            page_number: 1-based page number
            zoom: Zoom factor applied to token geometry
            generation: Render pass counter for the page
        """
        try:
            words = page.get_text("words", sort=True)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to extract words from page %d: %s", page_number, e)
            words = []
        return cls.from_words(words, page_number, zoom, generation)

    @classmethod
    def from_words(cls, words: Iterable[WordTuple], page_number: int,
                   zoom: float = 1.0, generation: int = 0) -> "PageTokenLayer":
        """Build a layer from PyMuPDF-style word tuples."""
        tokens = []
        for x0, y0, x1, y1, text, block_no, line_no, word_no in words:
            tokens.append(TokenInfo(
                text=text,
                bbox=(x0 * zoom, y0 * zoom, x1 * zoom, y1 * zoom),
                page_number=page_number,
                index=len(tokens),
                generation=generation,
                block_index=block_no,
                line_index=line_no,
                word_index=word_no,
            ))
        return cls(tokens, page_number, generation)

    @classmethod
    def from_texts(cls, texts: Sequence[str], page_number: int,
                   generation: int = 0) -> "PageTokenLayer":
        """Build a single-line layer from bare token strings."""
        words = [(i * 10.0, 0.0, i * 10.0 + 8.0, 10.0, text, 0, 0, i)
                 for i, text in enumerate(texts)]
        return cls.from_words(words, page_number, 1.0, generation)

    @property
    def texts(self) -> List[str]:
        """Token strings in reading order."""
        return [token.text for token in self.tokens]

    def _build_spatial_index(self):
        """Build a grid-based spatial index for fast token lookup."""
        self._token_grid.clear()

        for token in self.tokens:
            min_col = int(token.bbox[0] / self._grid_size)
            max_col = int(token.bbox[2] / self._grid_size)
            min_row = int(token.bbox[1] / self._grid_size)
            max_row = int(token.bbox[3] / self._grid_size)

            for row in range(min_row, max_row + 1):
                for col in range(min_col, max_col + 1):
                    self._token_grid.setdefault((row, col), []).append(token)

    def token_at_point(self, x: float, y: float) -> Optional[TokenInfo]:
        """Find the token under a screen point."""
        row = int(y / self._grid_size)
        col = int(x / self._grid_size)

        for token in self._token_grid.get((row, col), []):
            if token.contains_point(x, y):
                return token

        return None

    def tokens_in_range(self, start: TokenInfo, end: TokenInfo) -> List[TokenInfo]:
        """All tokens between start and end (inclusive), in reading order."""
        start_idx, end_idx = sorted((start.index, end.index))
        return self.tokens[start_idx:end_idx + 1]

    def tokens_in_rect(self, rect: Tuple[float, float, float, float]) -> List[TokenInfo]:
        """Get all tokens that intersect a screen rectangle."""
        x0, y0, x1, y1 = rect
        result = []
        seen = set()

        for row in range(int(y0 / self._grid_size), int(y1 / self._grid_size) + 1):
            for col in range(int(x0 / self._grid_size), int(x1 / self._grid_size) + 1):
                for token in self._token_grid.get((row, col), []):
                    if token.index in seen:
                        continue
                    if (token.bbox[0] <= x1 and token.bbox[2] >= x0
                            and token.bbox[1] <= y1 and token.bbox[3] >= y0):
                        result.append(token)
                        seen.add(token.index)

        result.sort(key=lambda t: t.index)
        return result

    def line_tokens(self, token: TokenInfo) -> List[TokenInfo]:
        """All tokens on the same line as token."""
        return [t for t in self.tokens if t.line_key == token.line_key]

    def range_rects(self, start: int, stop: int) -> List[Tuple[float, float, float, float]]:
        """
        One rectangle per line covering tokens[start:stop].

        Used both for painting tags and for writing PDF markup.
        """
        lines: Dict[Tuple[int, int], List[float]] = {}
        for token in self.tokens[start:stop]:
            rect = lines.get(token.line_key)
            if rect is None:
                lines[token.line_key] = list(token.bbox)
            else:
                rect[0] = min(rect[0], token.bbox[0])
                rect[1] = min(rect[1], token.bbox[1])
                rect[2] = max(rect[2], token.bbox[2])
                rect[3] = max(rect[3], token.bbox[3])
        return [tuple(rect) for rect in lines.values()]

    def __len__(self) -> int:
        return len(self.tokens)
