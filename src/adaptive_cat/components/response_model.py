# -*- coding: utf-8 -*-

"""
Graded response model (GRM) for ordered Likert categories.

P*(x >= 1) = 1
P*(x >= j) = logistic(slope * theta + d_{j-1}),  j = 2..k
P*(x >= k+1) = 0
P(x = j) = P*(x >= j) - P*(x >= j+1)

For a non-reversed item slope * theta + d_{j-1} = a * (theta - b_{j-1}).
All functions are pure and accept a scalar theta or an array of thetas.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/response_model.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Category probabilities, item information and response sampling

from typing import Sequence, Tuple, Union

import numpy as np

from adaptive_cat.components.item_bank import Item

ArrayLike = Union[float, Sequence[float], np.ndarray]

# floor for probabilities that underflow at extreme theta
_P_FLOOR = 1e-300


def _logistic(x: np.ndarray) -> np.ndarray:
    # tanh form does not overflow for large |x|
    return 0.5 * (1.0 + np.tanh(0.5 * x))


def boundary_probabilities(theta: ArrayLike, item: Item) -> np.ndarray:
    """
    Cumulative probabilities P*(x >= j) for j = 1..k+1.

    Parameters:
    ----------
    theta: float or array
        trait level(s)
    item: Item
        calibrated item

    Returns:
    -------
    np.ndarray
        shape theta.shape + (k + 1,), first column 1 and last column 0
    """
    theta = np.asarray(theta, dtype=float)
    z = item.slope * theta[..., None] + np.asarray(item.intercepts, dtype=float)
    p_star = _logistic(z)
    ones = np.ones(theta.shape + (1,))
    zeros = np.zeros(theta.shape + (1,))
    return np.concatenate([ones, p_star, zeros], axis=-1)


def category_probabilities(theta: ArrayLike, item: Item) -> np.ndarray:
    """
    Probability of each response category 1..k.

    Returns an array of shape theta.shape + (k,); column j-1 is P(x = j).
    """
    p_star = boundary_probabilities(theta, item)
    return p_star[..., :-1] - p_star[..., 1:]


def item_information(theta: ArrayLike, item: Item) -> Union[float, np.ndarray]:
    """
    Fisher information of an item at theta (closed form for the GRM).

    I(theta) = sum_j (P*'_j - P*'_{j+1})^2 / P_j,  P*' = slope * P* (1 - P*)

    Depends on slope only through slope^2, so a reverse-keyed item at theta
    carries the same information as its non-reversed twin at -theta.
    """
    p_star = boundary_probabilities(theta, item)
    d_star = item.slope * p_star * (1.0 - p_star)
    p = p_star[..., :-1] - p_star[..., 1:]
    dp = d_star[..., :-1] - d_star[..., 1:]
    terms = np.where(p > _P_FLOOR, dp ** 2 / np.maximum(p, _P_FLOOR), 0.0)
    info = terms.sum(axis=-1)
    return float(info) if np.ndim(info) == 0 else info


def log_probability_derivatives(theta: float, item: Item, category: int) -> Tuple[float, float, float]:
    """
    ln P(x = category | theta) with its first and second theta derivatives.

    Parameters:
    ----------
    theta: float
        trait level
    item: Item
        calibrated item
    category: int
        observed category (1..k)

    Returns:
    -------
    log_p, d1, d2: Tuple[float, float, float]
    """
    j = category - 1
    p_star = boundary_probabilities(float(theta), item)
    a = item.slope
    w = p_star * (1.0 - p_star)
    dw = a * w * (1.0 - 2.0 * p_star)

    p = max(p_star[j] - p_star[j + 1], _P_FLOOR)
    dp = a * (w[j] - w[j + 1])
    d2p = a * (dw[j] - dw[j + 1])

    d1 = dp / p
    d2 = d2p / p - d1 ** 2
    return float(np.log(p)), float(d1), float(d2)


def sample_response(theta: float, item: Item, rng: np.random.Generator) -> int:
    """
    Draw a category (1..k) at theta by inverse-CDF sampling against one uniform.
    """
    probs = category_probabilities(float(theta), item)
    u = rng.random()
    idx = int(np.searchsorted(np.cumsum(probs), u, side="right"))
    return min(idx, item.category_count - 1) + 1
