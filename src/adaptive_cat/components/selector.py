# -*- coding: utf-8 -*-

"""
Item selection during an adaptive administration.
This module provides the start rule for the first item and maximum-information
selection with randomesque exposure control for every later item.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/selector.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Start rule and maximum-information item selection

import logging
from typing import List, Sequence, Tuple

import numpy as np

from adaptive_cat.config import ExposureControl, SelectionCriterion, StartRule
from adaptive_cat.components.item_bank import Item
from adaptive_cat.components.response_model import item_information

logger = logging.getLogger(__name__)


def select_start_item(
        items: Sequence[Item],
        rng: np.random.Generator,
        rule: StartRule = StartRule.RANDOM
) -> int:
    """
    Select the first item of a session. No response data exists yet, so
    information is ignored.

    Parameters:
    ----------
    items: Sequence[Item]
        the full item bank
    rng: np.random.Generator
        session random stream
    rule: StartRule
        start rule (default: RANDOM)
    Returns:
        int: id of the selected item
    Raises:
    -------
    ValueError
        If 'items' is empty
    NotImplementedError
        If the rule is not implemented
    """
    if len(items) == 0:
        raise ValueError("The list of items is empty.")

    if rule == StartRule.RANDOM:
        return int(items[int(rng.integers(len(items)))].item_id)

    raise NotImplementedError(f"Unknown start rule: {rule}")


def rank_by_information(theta: float, items: Sequence[Item]) -> List[Tuple[int, float]]:
    """
    Rank items by information at theta, highest first; ties go to the lowest id.

    Returns:
    -------
    List[Tuple[int, float]]
        (item_id, information) pairs
    """
    ranked = [(item.item_id, float(item_information(theta, item))) for item in items]
    ranked.sort(key=lambda pair: (-pair[1], pair[0]))
    return ranked


def select_next_item(
        theta: float,
        candidates: Sequence[Item],
        rng: np.random.Generator,
        exposure: ExposureControl = ExposureControl(enabled=False, top_k=1),
        criterion: SelectionCriterion = SelectionCriterion.MAX_INFORMATION
) -> int:
    """
    Select the next item among the unadministered candidates.

    Parameters:
    ----------
    theta: float
        current ability estimate
    candidates: Sequence[Item]
        items not yet administered in this session
    rng: np.random.Generator
        session random stream (used only for randomesque draws)
    exposure: ExposureControl
        when enabled with top_k > 1, draw uniformly among the top_k items
    criterion: SelectionCriterion
        selection criterion (default: MAX_INFORMATION)
    Returns:
        int: id of the selected item
    Raises:
    -------
    ValueError
        If 'candidates' is empty
    NotImplementedError
        If the criterion is not implemented
    """
    if len(candidates) == 0:
        raise ValueError("The list of candidate items is empty.")
    if criterion != SelectionCriterion.MAX_INFORMATION:
        raise NotImplementedError(f"Unknown selection criterion: {criterion}")

    ranked = rank_by_information(theta, candidates)

    if exposure.enabled and exposure.top_k > 1:
        pool = ranked[:exposure.top_k]
        chosen = pool[int(rng.integers(len(pool)))][0]
    else:
        chosen = ranked[0][0]

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "[Selector] theta=%.3f top=%s chosen=%d",
            theta, [(i, round(v, 3)) for i, v in ranked[:3]], chosen,
        )
    return int(chosen)
