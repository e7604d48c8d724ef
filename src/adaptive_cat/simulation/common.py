# -*- coding: utf-8 -*-

"""
common utilities for Monte Carlo validation of the adaptive questionnaire.
This module provides configuration loading for validation runs and the
recovery statistics (bias, MAE, RMSE) overall and conditional on true theta.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/simulation/common.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Common utilities for validation simulations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error

from adaptive_cat.errors import ConfigurationError

LOG_REQUIRED_COLS = ["true_theta", "theta_hat", "n_items"]

# right-closed bins: (-inf, -2], (-2, -1], (-1, 0], (0, 1], (1, 2], (2, inf)
THETA_BIN_EDGES = [-math.inf, -2.0, -1.0, 0.0, 1.0, 2.0, math.inf]
THETA_BIN_LABELS = ["(-inf, -2]", "(-2, -1]", "(-1, 0]", "(0, 1]", "(1, 2]", "(2, inf)"]

# ----------------------------
# Config dataclasses
# ----------------------------

@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for a Monte Carlo validation run."""
    n_examinees: int = 10000
    random_seed: int = 42
    n_workers: int = 1

@dataclass(frozen=True)
class ResultsConfig:
    """Where and how validation outputs are saved."""
    save_csv: bool = True
    output_dir: str = "outputs/validation"
    timestamped: bool = True
    save_runs: bool = False
    filename_suffix: str = ""

# ----------------------------
# Config validation
# ----------------------------

def validate_simulation_config(s: SimulationConfig) -> None:
    if s.n_examinees < 1:
        raise ConfigurationError(f"simulation.n_examinees must be >= 1: {s.n_examinees}")
    if s.n_workers < 1:
        raise ConfigurationError(f"simulation.n_workers must be >= 1: {s.n_workers}")

# ----------------------------
# Loaders
# ----------------------------

def load_simulation_config(cfg: Dict[str, Any]) -> SimulationConfig:
    sim = cfg.get("simulation", {}) or {}
    out = SimulationConfig(
        n_examinees=int(sim.get("n_examinees", 10000)),
        random_seed=int(sim.get("random_seed", 42)),
        n_workers=int(sim.get("n_workers", 1)),
    )
    validate_simulation_config(out)
    return out

def load_results_config(cfg: Dict[str, Any]) -> ResultsConfig:
    res = cfg.get("results", {}) or {}
    for key in ("save_csv", "timestamped", "save_runs"):
        if key in res and not isinstance(res[key], bool):
            raise ConfigurationError(f"results.{key} must be a boolean.")
    return ResultsConfig(
        save_csv=res.get("save_csv", True),
        output_dir=str(res.get("output_dir", "outputs/validation")),
        timestamped=res.get("timestamped", True),
        save_runs=res.get("save_runs", False),
        filename_suffix=str(res.get("filename_suffix", "") or "").strip(),
    )

# ----------------------------
# Validation helpers
# ----------------------------

def validate_columns(df: pd.DataFrame, required: Sequence[str], df_name: str) -> None:
    """
    Validate that required columns are present in the DataFrame.
    Parameters:
    -----------
        df: pd.DataFrame
            DataFrame to validate
        required: Sequence[str]
            List of required column names
        df_name: str
            Name of the DataFrame (for error messages)
    Returns:
    -------
        None
    """
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns in {df_name}: {missing}")

# ----------------------------
# Metrics summarization
# ----------------------------

def _recovery(true_theta: pd.Series, theta_hat: pd.Series) -> Dict[str, float]:
    diff = theta_hat.to_numpy(dtype=float) - true_theta.to_numpy(dtype=float)
    return {
        "bias": float(np.mean(diff)),
        "mae": float(mean_absolute_error(true_theta, theta_hat)),
        "rmse": float(np.sqrt(mean_squared_error(true_theta, theta_hat))),
    }

def summarize_metrics(logs_df: pd.DataFrame) -> Dict[str, Any]:
    """
    Overall recovery statistics.
    Parameters:
    -----------
        logs_df: pd.DataFrame
            one row per simulated examinee with true_theta, theta_hat, n_items
    Returns:
    -------
        metrics: Dict[str, Any]
            n, bias = mean(theta_hat - true_theta), mae, rmse, avg_items
    """
    # empty guard
    if logs_df is None or logs_df.empty:
        return {"n": 0, "bias": None, "mae": None, "rmse": None, "avg_items": None}

    validate_columns(logs_df, LOG_REQUIRED_COLS, "logs_df")

    return {
        "n": int(len(logs_df)),
        **_recovery(logs_df["true_theta"], logs_df["theta_hat"]),
        "avg_items": float(logs_df["n_items"].mean()),
    }

def assign_theta_bins(true_theta: pd.Series) -> pd.Series:
    """Label each true theta with its right-closed conditional bin."""
    return pd.cut(true_theta, bins=THETA_BIN_EDGES, labels=THETA_BIN_LABELS, right=True)

def conditional_metrics(logs_df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Recovery statistics conditional on the true theta bin.
    Every bin is reported in fixed order; empty bins have n=0 and None metrics.
    Returns:
    -------
        List[Dict[str, Any]]
            range_label, n, cbias, cmae, crmse, avg_items
    """
    rows: List[Dict[str, Any]] = []
    if logs_df is None or logs_df.empty:
        bins = pd.Series(dtype=object)
    else:
        validate_columns(logs_df, LOG_REQUIRED_COLS, "logs_df")
        bins = assign_theta_bins(logs_df["true_theta"])

    for label in THETA_BIN_LABELS:
        group = logs_df[bins == label] if len(bins) else None
        if group is None or group.empty:
            rows.append({
                "range_label": label, "n": 0,
                "cbias": None, "cmae": None, "crmse": None, "avg_items": None,
            })
            continue
        stats = _recovery(group["true_theta"], group["theta_hat"])
        rows.append({
            "range_label": label,
            "n": int(len(group)),
            "cbias": stats["bias"],
            "cmae": stats["mae"],
            "crmse": stats["rmse"],
            "avg_items": float(group["n_items"].mean()),
        })
    return rows

def status_counts(logs_df: pd.DataFrame) -> Dict[str, int]:
    """Number of sessions per terminal status."""
    if logs_df is None or logs_df.empty or "status" not in logs_df.columns:
        return {}
    return {str(k): int(v) for k, v in logs_df["status"].value_counts().sort_index().items()}
