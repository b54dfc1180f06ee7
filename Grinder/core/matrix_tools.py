"""
Matrix utilities for window extraction, labeling and serialization.

Region extraction is *bounded*: the requested rectangle may hang off the
chromosome, in which case the missing cells are zero and the result still has
exactly the requested shape.
"""

from __future__ import annotations

import logging
from typing import Optional, TextIO, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DATA_FORMAT = '%.8g'
LABEL_FORMAT = '%d'


def _clip_span(start: int, end: int, limit: int) -> Tuple[int, int]:
    return max(start, 0), min(end, limit)


def extract_local_bounded_region(zoom_data, window, normalization: str) -> np.ndarray:
    """
    Return normalized observed values for *window*, zero-padded to its shape.

    Args:
        zoom_data:     Source with ``num_bins`` and ``fetch(r0, r1, c0, c1, norm)``.
        window:        ``Window`` in bin units.
        normalization: Normalization name forwarded to ``fetch``.
    """
    out = np.zeros(window.shape, dtype=np.float64)
    r0, r1 = _clip_span(window.row_start, window.row_end, zoom_data.num_bins)
    c0, c1 = _clip_span(window.col_start, window.col_end, zoom_data.num_bins)
    if r0 >= r1 or c0 >= c1:
        return out

    block = np.asarray(zoom_data.fetch(r0, r1, c0, c1, normalization), dtype=np.float64)
    if block.shape != (r1 - r0, c1 - c0):
        raise ValueError(
            f"value source returned shape {block.shape} for rectangle "
            f"[{r0}:{r1}, {c0}:{c1}]"
        )
    block = np.where(np.isfinite(block), block, 0.0)
    out[r0 - window.row_start:r1 - window.row_start,
        c0 - window.col_start:c1 - window.col_start] = block
    return out


def extract_obs_over_exp_bounded_region(
    zoom_data,
    window,
    normalization: str,
    expected_values,
    chrom_index: int,
    threshold: float = 2.0,
    pseudocount: float = 1.0,
) -> np.ndarray:
    """
    Return the bounded log observed/expected ratio for *window*.

    Each cell holds ``log((obs + p) / (exp + p))`` clipped to
    ``[-threshold, threshold]`` where ``exp`` is the expected value at the
    cell's distance from the diagonal.  Cells outside the chromosome are 0.
    """
    observed = extract_local_bounded_region(zoom_data, window, normalization)

    rows = np.arange(window.row_start, window.row_end)[:, None]
    cols = np.arange(window.col_start, window.col_end)[None, :]
    distances = np.abs(rows - cols)
    expected = np.asarray(expected_values.expected(chrom_index, distances), dtype=np.float64)

    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = np.log((observed + pseudocount) / (expected + pseudocount))
    ratio[~np.isfinite(ratio)] = 0.0
    ratio = np.clip(ratio, -threshold, threshold)

    in_bounds = ((rows >= 0) & (rows < zoom_data.num_bins)
                 & (cols >= 0) & (cols < zoom_data.num_bins))
    ratio[~in_bounds] = 0.0
    return ratio


def _footprint(labels: np.ndarray, row_length: int, col_length: int,
               start_row: int, start_col: int) -> Optional[Tuple[slice, slice]]:
    num_rows, num_cols = labels.shape
    r0, r1 = _clip_span(start_row, start_row + row_length, num_rows)
    c0, c1 = _clip_span(start_col, start_col + col_length, num_cols)
    if r0 >= r1 or c0 >= c1:
        return None
    return slice(r0, r1), slice(c0, c1)


def label_region_with_ones(
    labels: np.ndarray,
    row_length: int,
    col_length: int,
    start_row: int,
    start_col: int,
) -> int:
    """
    Set a ``row_length × col_length`` rectangle at ``(start_row, start_col)``
    to 1, clipped to the bounds of *labels*.

    Returns:
        Number of cells inside the clipped footprint.
    """
    region = _footprint(labels, row_length, col_length, start_row, start_col)
    if region is None:
        return 0
    labels[region] = 1
    return labels[region].size


def label_enriched_region_with_ones(
    labels: np.ndarray,
    data: np.ndarray,
    row_length: int,
    col_length: int,
    start_row: int,
    start_col: int,
    threshold: Optional[float] = None,
) -> int:
    """
    Within the clipped footprint, set labels to 1 where ``data > threshold``.

    When *threshold* is None the mean of *data* over the footprint is used.

    Returns:
        Number of cells stamped.
    """
    if labels.shape != data.shape:
        raise ValueError(f"label shape {labels.shape} does not match data shape {data.shape}")
    region = _footprint(labels, row_length, col_length, start_row, start_col)
    if region is None:
        return 0
    values = data[region]
    cutoff = float(values.mean()) if threshold is None else threshold
    enriched = values > cutoff
    labels[region][enriched] = 1
    return int(enriched.sum())


def write_matrix_text(handle: TextIO, grid: np.ndarray, is_label: bool = False) -> None:
    """Write *grid* row-major, whitespace-separated, one row per line."""
    np.savetxt(handle, np.atleast_2d(grid), fmt=LABEL_FORMAT if is_label else DATA_FORMAT,
               delimiter=' ')


def read_matrix_text(path) -> np.ndarray:
    """Inverse of ``write_matrix_text``; always returns a 2D array."""
    return np.atleast_2d(np.loadtxt(path, dtype=np.float64, ndmin=2))
