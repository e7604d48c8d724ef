# -*- coding: utf-8 -*-

"""
Stopping rule for an adaptive administration.

Evaluated after every recorded response, once theta and SEM have been
recomputed:

1. fewer than min_items administered -> continue (SEM is ignored)
2. max_items reached                 -> stopped_max
3. SEM <= min_sem                    -> stopped_precision
4. no item left                      -> stopped_exhausted
5. otherwise                         -> continue

Rule 4 also applies below min_items, since the session cannot continue
without items. STOPPED_MIN is kept only as a label and is never produced.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/stopping.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Session status and the stopping-rule state machine

from enum import Enum

from adaptive_cat.config import CATConfig


class SessionStatus(str, Enum):
    """
    Session states. IN_PROGRESS is the "continue" state.
    """
    IN_PROGRESS = "in_progress"
    STOPPED_MIN = "stopped_min"
    STOPPED_MAX = "stopped_max"
    STOPPED_PRECISION = "stopped_precision"
    STOPPED_EXHAUSTED = "stopped_exhausted"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.IN_PROGRESS


def evaluate_stopping_rule(
        administered_count: int,
        sem: float,
        remaining_count: int,
        config: CATConfig
) -> SessionStatus:
    """
    Decide whether the session continues.

    Parameters:
    ----------
    administered_count: int
        number of responses recorded so far
    sem: float
        standard error of the current estimate
    remaining_count: int
        number of items not yet administered
    config: CATConfig
        design holding min_items, max_items and min_sem

    Returns:
    -------
    SessionStatus
    """
    if administered_count < config.min_items and remaining_count > 0:
        return SessionStatus.IN_PROGRESS
    if administered_count >= config.max_items:
        return SessionStatus.STOPPED_MAX
    if administered_count >= config.min_items and sem <= config.min_sem:
        return SessionStatus.STOPPED_PRECISION
    if remaining_count <= 0:
        return SessionStatus.STOPPED_EXHAUSTED
    return SessionStatus.IN_PROGRESS
