"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Orientation Geometry - Stripe Window Rectangles & Canonical Transform        │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Pure geometry for the two stripe orientations.

    A horizontal window hangs below-right of its anchor::

        rows [row, row + x)      cols [col, col + y)      shape x × y

    A vertical window hangs above-left of its anchor::

        rows [row - y, row)      cols [col - x, col)      shape y × x

    Vertical outputs are rotated into the horizontal shape before they are
    written.  For an ``R × C`` grid ``M`` the canonical grid ``T`` is
    ``C × R`` with ``T[C-1-j][R-1-i] = M[i][j]`` (transpose about the
    anti-diagonal).  The same transform is applied to data and label grids so
    every data cell keeps its label.

USAGE::

    orient = Orientation.VERTICAL
    window = orient.window(row_index=120, col_index=130, x=10, y=100)
    canonical = orient.canonicalize(data)     # 100 × 10  →  10 × 100
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from Grinder.config.grind import ORIENTATION_TAGS


@dataclass(frozen=True)
class Window:
    """Half-open bin rectangle ``[row_start, row_end) × [col_start, col_end)``."""
    row_start: int
    col_start: int
    row_end: int
    col_end: int

    @property
    def num_rows(self) -> int:
        return self.row_end - self.row_start

    @property
    def num_cols(self) -> int:
        return self.col_end - self.col_start

    @property
    def shape(self) -> Tuple[int, int]:
        return self.num_rows, self.num_cols

    def to_bp(self, resolution: int) -> Tuple[int, int, int, int]:
        """Return ``(row_start, col_start, row_end, col_end)`` in base pairs."""
        return (
            self.row_start * resolution,
            self.col_start * resolution,
            self.row_end * resolution,
            self.col_end * resolution,
        )


def canonicalize_vertical(grid: np.ndarray) -> np.ndarray:
    """
    Rotate an ``R × C`` vertical-window grid into the ``C × R`` canonical form.

    ``out[C-1-j, R-1-i] == grid[i, j]`` for every ``(i, j)``.
    """
    grid = np.asarray(grid)
    if grid.ndim != 2:
        raise ValueError(f"expected a 2D grid, got shape {grid.shape}")
    return np.ascontiguousarray(grid.T[::-1, ::-1])


class Orientation(Enum):
    """Stripe window orientation."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def is_vertical(self) -> bool:
        return self is Orientation.VERTICAL

    @property
    def tag(self) -> str:
        """File-name tag: ``_Horzntl`` or ``_Vertcl``."""
        return ORIENTATION_TAGS[self.value]

    def window(self, row_index: int, col_index: int, x: int, y: int) -> Window:
        """Rectangle scanned for an anchor at ``(row_index, col_index)``."""
        if self.is_vertical:
            return Window(row_index - y, col_index - x, row_index, col_index)
        return Window(row_index, col_index, row_index + x, col_index + y)

    def accepts(self, row_length: int, col_length: int) -> bool:
        """
        Whether a feature footprint is elongated along this orientation.

        Horizontal stripes are wider than tall, vertical stripes taller than wide.
        """
        if self.is_vertical:
            return row_length > col_length
        return col_length > row_length

    def canonicalize(self, grid: np.ndarray) -> np.ndarray:
        """Return *grid* in the horizontal canonical form."""
        if self.is_vertical:
            return canonicalize_vertical(grid)
        return grid
