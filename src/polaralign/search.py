"""
Two-parameter coarse-to-fine grid search.

Both the refresh tracker and the pixel-space search look for the pair of
knob rotations that best explains an observation. The error surface is not
separable, so every pair on a grid is tried, and the grid is then refined
around the best pair.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Iterable, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# objective(a, b) -> cost. a has shape (N, 1) and b (1, M); the result must
# broadcast to (N, M). NaN marks candidates that could not be evaluated.
Objective = Callable[[np.ndarray, np.ndarray], np.ndarray]


@dataclass(frozen=True)
class GridPass:
    """Half-width and step of one search pass, in degrees."""

    span: float
    step: float


@dataclass(frozen=True)
class SearchResult:
    a: float
    b: float
    cost: float


def grid_values(start: float, stop: float, step: float, inclusive: bool) -> np.ndarray:
    """
    Candidate values from start to stop.

    Values are accumulated by repeated addition so the sampled points are
    exactly those of an incrementing loop.
    """
    values = []
    value = start
    while value < stop or (inclusive and value <= stop):
        values.append(value)
        value += step
    return np.array(values)


def grid_search(
    objective: Objective,
    center: Tuple[float, float],
    span: float,
    step: float,
    inclusive: bool = True,
) -> Optional[SearchResult]:
    """
    Evaluates objective on the grid center +/- span and returns the minimum.

    Ties go to the first candidate in (a, b) row-major order. Returns None
    when no candidate could be evaluated.
    """
    span = abs(span)
    a_values = grid_values(center[0] - span, center[0] + span, step, inclusive)
    b_values = grid_values(center[1] - span, center[1] + span, step, inclusive)
    if a_values.size == 0 or b_values.size == 0:
        return None

    costs = np.asarray(objective(a_values[:, None], b_values[None, :]), dtype=float)
    costs = np.broadcast_to(costs, (a_values.size, b_values.size))
    if np.all(np.isnan(costs)):
        return None

    i, j = np.unravel_index(np.nanargmin(costs), costs.shape)
    return SearchResult(float(a_values[i]), float(b_values[j]), float(costs[i, j]))


def coarse_to_fine(
    objective: Objective,
    passes: Iterable[GridPass],
    center: Tuple[float, float] = (0.0, 0.0),
    inclusive: bool = True,
) -> Optional[SearchResult]:
    """
    Runs grid_search once per pass, each centred on the previous optimum.

    Stops early, keeping the previous optimum, if a pass finds nothing.
    """
    best = None
    for grid in passes:
        result = grid_search(objective, center, grid.span, grid.step, inclusive)
        if result is None:
            break
        logger.debug(
            "Search pass span %.4f step %.5f: a=%.5f b=%.5f cost=%.6g",
            grid.span,
            grid.step,
            result.a,
            result.b,
            result.cost,
        )
        best = result
        center = (result.a, result.b)
    return best
