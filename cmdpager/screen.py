"""Cell-grid drawing primitives.

A ``Canvas`` holds one frame of styled cells. ``Box`` is a clipped rectangular
view onto a canvas; widgets draw in box-local coordinates and never write
outside their box.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ansi import SGR_RESET, StyledCell, styled_cells

BOLD = "\x1b[1m"
UNDERLINE = "\x1b[4m"
RED = "\x1b[31m"

_BLANK = StyledCell(" ")
# Right half of a double-width character.
_CONTINUATION = StyledCell("", width=0)


class Canvas:
    """Fixed-size grid of styled cells rendered as one full-screen frame."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.rows: list[list[StyledCell]] = [[_BLANK] * self.width for _ in range(self.height)]

    def put(self, x: int, y: int, cell: StyledCell) -> None:
        if not (0 <= y < self.height and 0 <= x < self.width):
            return
        row = self.rows[y]
        if cell.width == 2:
            if x + 1 >= self.width:
                row[x] = StyledCell(" ", cell.style)
                return
            row[x] = cell
            row[x + 1] = _CONTINUATION
            return
        row[x] = cell

    def row_text(self, y: int) -> str:
        """Plain text of one row, without styles."""
        return "".join(cell.char for cell in self.rows[y])

    def to_ansi(self) -> str:
        """Render the whole frame as an escape string starting at the home position."""
        out: list[str] = ["\x1b[H"]
        for y, row in enumerate(self.rows):
            active = ""
            for cell in row:
                if cell.width == 0:
                    continue
                if cell.style != active:
                    out.append(SGR_RESET)
                    out.append(cell.style)
                    active = cell.style
                out.append(cell.char)
            if active:
                out.append(SGR_RESET)
            if y < self.height - 1:
                out.append("\r\n")
        return "".join(out)


@dataclass(frozen=True)
class Box:
    """Rectangle in canvas coordinates."""

    left: int
    top: int
    width: int
    height: int

    def sub_box(self, left: int, top: int, width: int, height: int) -> Box:
        """Return a box positioned relative to this one, clipped to it."""
        left = max(0, left)
        top = max(0, top)
        width = max(0, min(width, self.width - left))
        height = max(0, min(height, self.height - top))
        return Box(self.left + left, self.top + top, width, height)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def draw_cell(self, canvas: Canvas, x: int, y: int, cell: StyledCell) -> None:
        if not self.contains(x, y) or (cell.width == 2 and x + 1 >= self.width):
            return
        canvas.put(self.left + x, self.top + y, cell)

    def draw_cells(self, canvas: Canvas, x: int, y: int, cells: list[StyledCell]) -> int:
        """Draw cells left to right from ``(x, y)``; return columns consumed."""
        col = x
        for cell in cells:
            if col >= self.width:
                break
            self.draw_cell(canvas, col, y, cell)
            col += cell.width
        return col - x

    def draw_text(self, canvas: Canvas, x: int, y: int, text: str, style: str = "") -> int:
        """Draw unstyled ``text`` with a single SGR ``style``."""
        cells = [StyledCell(cell.char, style, cell.width) for cell in styled_cells(text)]
        return self.draw_cells(canvas, x, y, cells)

    def draw_styled_line(self, canvas: Canvas, x: int, y: int, text: str) -> int:
        """Draw a line that may carry its own ANSI color codes."""
        return self.draw_cells(canvas, x, y, styled_cells(text, max_cols=max(0, self.width - x)))
