# -*- coding: utf-8 -*-

"""
Monte Carlo validation of the adaptive questionnaire.

Each simulated examinee gets a fixed true theta, answers every presented item
with a category drawn from the response model at that true theta, and is run
through a normal CAT session to termination. Recovery of the true theta is
then summarized overall and per theta bin.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/simulation/validation.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Monte Carlo recovery study for the CAT engine

import time
import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from adaptive_cat.config import CATConfig, load_cat_config
from adaptive_cat.components.estimator import AbilityEstimator
from adaptive_cat.components.item_bank import ItemBank, load_item_bank_from_config
from adaptive_cat.components.response_model import sample_response
from adaptive_cat.components.rng import make_rng
from adaptive_cat.components.session import CATSession, SessionResult
from adaptive_cat.simulation.common import (
    conditional_metrics,
    load_simulation_config,
    status_counts,
    summarize_metrics,
)

logger = logging.getLogger(__name__)

ThetaGenerator = Callable[[np.random.Generator, int], np.ndarray]


@dataclass(frozen=True)
class ValidationRun:
    """One simulated examinee: true theta and the terminal session."""
    examinee: int
    true_theta: float
    result: SessionResult

    @property
    def error(self) -> float:
        return self.result.theta_hat - self.true_theta

    @property
    def abs_error(self) -> float:
        return abs(self.error)

    @property
    def sq_error(self) -> float:
        return self.error ** 2


@dataclass(frozen=True)
class ValidationReport:
    overall: Dict[str, Any]
    conditional: List[Dict[str, Any]]
    runs: Tuple[ValidationRun, ...] = ()
    status_counts: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        overall = {k: self.overall[k] for k in ("n", "bias", "mae", "rmse")}
        return {"overall": overall, "conditional": [dict(row) for row in self.conditional]}

    def conditional_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.conditional)

    def runs_frame(self) -> pd.DataFrame:
        return runs_to_frame(self.runs)


def standard_normal_thetas(rng: np.random.Generator, n: int) -> np.ndarray:
    """Default population: n i.i.d. standard normal true thetas."""
    return rng.standard_normal(n)


def runs_to_frame(runs: Sequence[ValidationRun]) -> pd.DataFrame:
    """
    One row per simulated examinee.
    """
    return pd.DataFrame([{
        "examinee": r.examinee,
        "true_theta": r.true_theta,
        "theta_hat": r.result.theta_hat,
        "sem": r.result.sem,
        "error": r.error,
        "abs_error": r.abs_error,
        "sq_error": r.sq_error,
        "n_items": r.result.n_items,
        "status": r.result.status.value,
        "degraded_estimate": r.result.degraded_estimate,
        "items": [a.item_id for a in r.result.administered_items],
    } for r in runs], columns=[
        "examinee", "true_theta", "theta_hat", "sem", "error", "abs_error", "sq_error",
        "n_items", "status", "degraded_estimate", "items",
    ])


def simulate_examinee(
        bank: ItemBank,
        config: CATConfig,
        true_theta: float,
        examinee: int,
        run_seed: int,
        estimator: Optional[AbilityEstimator] = None,
) -> ValidationRun:
    """
    Run one simulated examinee through a CAT session.

    Item selection and simulated answers use two independent streams derived
    from (run_seed, examinee), so a run does not depend on which worker
    simulates it or in what order.
    """
    session_rng = make_rng(run_seed, examinee, "session")
    response_rng = make_rng(run_seed, examinee, "responses")

    session = CATSession(
        bank, config, estimator=estimator, rng=session_rng, session_id=f"sim-{examinee}"
    )
    result = session.run(lambda item: sample_response(true_theta, item, response_rng))
    return ValidationRun(examinee=int(examinee), true_theta=float(true_theta), result=result)


def _simulate_chunk(
        bank: ItemBank,
        config: CATConfig,
        examinees: Sequence[int],
        thetas: Sequence[float],
        run_seed: int,
) -> List[ValidationRun]:
    estimator = AbilityEstimator(bank, method=config.estimation_method)
    return [
        simulate_examinee(bank, config, theta, examinee, run_seed, estimator=estimator)
        for examinee, theta in zip(examinees, thetas)
    ]


def run_validation(
        bank: ItemBank,
        config: CATConfig,
        n_examinees: int = 10000,
        seed: int = 42,
        true_thetas: Optional[Sequence[float]] = None,
        theta_generator: Optional[ThetaGenerator] = None,
        n_workers: int = 1,
) -> ValidationReport:
    """
    Simulate a population of examinees and measure theta recovery.

    Parameters:
    -----------
        bank: ItemBank
            calibrated item bank
        config: CATConfig
            administration design used for every examinee
        n_examinees: int
            population size (ignored when true_thetas is given)
        seed: int
            run seed; fixes the population and every examinee stream
        true_thetas: Sequence[float], optional
            explicit true thetas
        theta_generator: ThetaGenerator, optional
            (rng, n) -> thetas; standard normal by default
        n_workers: int
            number of worker processes (1 runs in-process)
    Returns:
    -------
        ValidationReport
    """
    if true_thetas is None:
        if n_examinees < 1:
            raise ValueError(f"n_examinees must be >= 1: {n_examinees}")
        generator = theta_generator or standard_normal_thetas
        thetas = np.asarray(generator(make_rng(seed, "population", "thetas"), n_examinees), dtype=float)
    else:
        thetas = np.asarray(true_thetas, dtype=float)
    if thetas.ndim != 1 or thetas.size == 0:
        raise ValueError("true thetas must be a non-empty 1-d sequence")
    if not np.all(np.isfinite(thetas)):
        raise ValueError("true thetas must be finite")

    examinees = np.arange(thetas.size)
    start_time = time.time()

    if n_workers <= 1:
        runs = _simulate_chunk(bank, config, examinees.tolist(), thetas.tolist(), seed)
    else:
        n_chunks = min(thetas.size, n_workers * 4)
        idx_chunks = [c for c in np.array_split(examinees, n_chunks) if c.size]
        runs = []
        with ProcessPoolExecutor(max_workers=n_workers) as pool:
            futures = [
                pool.submit(_simulate_chunk, bank, config, c.tolist(), thetas[c].tolist(), seed)
                for c in idx_chunks
            ]
            for future in futures:
                runs.extend(future.result())
        runs.sort(key=lambda r: r.examinee)

    logs_df = runs_to_frame(runs)
    overall = summarize_metrics(logs_df)
    conditional = conditional_metrics(logs_df)
    counts = status_counts(logs_df)

    logger.info(
        "Validation finished: n=%d bias=%.4f mae=%.4f rmse=%.4f avg_items=%.2f (%.1fs)",
        overall["n"], overall["bias"], overall["mae"], overall["rmse"], overall["avg_items"],
        time.time() - start_time,
    )
    return ValidationReport(
        overall=overall, conditional=conditional, runs=tuple(runs), status_counts=counts
    )


def run_validation_from_config(cfg: Dict[str, Any]) -> ValidationReport:
    """Load item bank, CAT design and simulation settings from cfg and run."""
    bank = load_item_bank_from_config(cfg)
    cat_config = load_cat_config(cfg)
    sim = load_simulation_config(cfg)
    return run_validation(
        bank,
        cat_config,
        n_examinees=sim.n_examinees,
        seed=sim.random_seed,
        n_workers=sim.n_workers,
    )


def format_report(report: ValidationReport, title: str = "CAT VALIDATION REPORT") -> str:
    """Plain-text rendering of a report for terminals and logs."""
    o = report.overall
    lines = [
        f" {title} ",
        f"Overall BIAS:  {o['bias']:.4f}",
        f"Overall MAE:   {o['mae']:.4f}",
        f"Overall RMSE:  {o['rmse']:.4f}",
        f"N: {o['n']}  avg items: {o['avg_items']:.2f}",
        "",
        f"{'range':<12}{'N':>7}{'CBIAS':>10}{'CMAE':>10}{'CRMSE':>10}{'items':>8}",
    ]

    def fmt(v, width, precision):
        return f"{v:>{width}.{precision}f}" if v is not None else f"{'-':>{width}}"

    for row in report.conditional:
        lines.append(
            f"{row['range_label']:<12}{row['n']:>7}"
            f"{fmt(row['cbias'], 10, 4)}{fmt(row['cmae'], 10, 4)}"
            f"{fmt(row['crmse'], 10, 4)}{fmt(row['avg_items'], 8, 2)}"
        )
    if report.status_counts:
        lines.append("")
        lines.append("status: " + ", ".join(f"{k}={v}" for k, v in report.status_counts.items()))
    return "\n".join(lines)
