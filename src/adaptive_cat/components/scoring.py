# -*- coding: utf-8 -*-

"""
Score summaries for a finished session.

The Bayesian estimate (theta_hat, SEM) is the canonical trait score. The
proportional raw score and its linear theta mapping are kept as a separate,
legacy scoring mode and are never mixed into theta_hat.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/scoring.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Reliability, standardized scores, subscale means and legacy raw score

import math
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from adaptive_cat.components.item_bank import ItemBank
from adaptive_cat.components.session import AdministeredItem, SessionResult

# trait level cut points on the theta scale
HIGH_LEVEL_CUT = 0.8
LOW_LEVEL_CUT = -0.8

LEGACY_THETA_LIMIT = 3.5


def reliability(sem: float) -> float:
    """Approximate reliability 1 - SEM^2, floored at 0."""
    return max(0.0, 1.0 - sem ** 2)


def precision_label(rel: float) -> str:
    if rel > 0.90:
        return "excellent"
    if rel > 0.80:
        return "good"
    return "moderate"


def t_score(theta: float) -> int:
    """Standardized 1-99 score: 15 points per SD around 50."""
    return int(min(99, max(1, round(theta * 15 + 50))))


def percentile(theta: float) -> int:
    """Percentile of theta in the standard normal reference population."""
    return int(round(50.0 * (1.0 + math.erf(theta / math.sqrt(2.0)))))


def trait_level(theta: float) -> str:
    if theta >= HIGH_LEVEL_CUT:
        return "high"
    if theta <= LOW_LEVEL_CUT:
        return "low"
    return "moderate"


def keyed_value(category: int, category_count: int, reverse_keyed: bool) -> int:
    """Response on the trait direction: reverse-keyed answers are mirrored."""
    return category_count + 1 - category if reverse_keyed else category


def _keyed_responses(history: Iterable[AdministeredItem], bank: ItemBank) -> List[tuple]:
    out = []
    for a in history:
        item = bank[a.item_id]
        out.append((item, keyed_value(a.category, item.category_count, item.reverse_keyed)))
    return out


def dimension_means(history: Iterable[AdministeredItem], bank: ItemBank) -> Dict[str, float]:
    """
    Mean keyed Likert value per item dimension, over answered items only.
    Dimensions without any answered item are left out; items without a
    dimension label are ignored.
    """
    groups: Dict[str, List[int]] = defaultdict(list)
    for item, value in _keyed_responses(history, bank):
        if item.dimension:
            groups[item.dimension].append(value)
    return {dim: sum(values) / len(values) for dim, values in groups.items()}


def legacy_raw_score(history: Iterable[AdministeredItem], bank: ItemBank) -> int:
    """
    Proportional raw score 0-100: sum of keyed values over the maximum
    possible for the answered items. 0 when nothing was answered.
    """
    keyed = _keyed_responses(history, bank)
    if not keyed:
        return 0
    max_possible = sum(item.category_count for item, _ in keyed)
    return int(round(sum(v for _, v in keyed) / max_possible * 100))


def legacy_theta(raw_score: float) -> float:
    """Linear mapping of the legacy raw score onto the theta scale, clipped to +-3.5."""
    theta = (raw_score - 50) / 15
    return max(-LEGACY_THETA_LIMIT, min(LEGACY_THETA_LIMIT, theta))


def summarize_session(result: SessionResult, bank: ItemBank) -> Dict[str, Any]:
    """
    Scores reported to the examinee at the end of a session.

    Returns:
    -------
    Dict[str, Any]
        canonical theta/SEM-based scores, subscale means and, under
        "legacy", the raw-score mode
    """
    rel = reliability(result.sem)
    raw = legacy_raw_score(result.administered_items, bank)
    return {
        "session_id": result.session_id,
        "status": result.status.value,
        "theta": result.theta_hat,
        "sem": result.sem,
        "reliability": rel,
        "precision": precision_label(rel),
        "t_score": t_score(result.theta_hat),
        "percentile": percentile(result.theta_hat),
        "level": trait_level(result.theta_hat),
        "items_answered": result.n_items,
        "degraded_estimate": result.degraded_estimate,
        "dimensions": dimension_means(result.administered_items, bank),
        "legacy": {"raw_score": raw, "theta": legacy_theta(raw)},
    }


def session_log_record(result: SessionResult, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """One row of the per-participant session log."""
    ts = timestamp or datetime.now()
    return {
        "date": ts.strftime("%Y-%m-%d %H:%M:%S"),
        "session_id": result.session_id,
        "theta": round(result.theta_hat, 3),
        "sem": round(result.sem, 3),
        "reliability": round(reliability(result.sem), 3),
        "items_answered": result.n_items,
        "status": result.status.value,
    }
