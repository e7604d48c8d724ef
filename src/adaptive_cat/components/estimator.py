# -*- coding: utf-8 -*-

"""
Bayesian ability estimation (EAP and MAP) under the graded response model.

The prior is standard normal. Estimates are always recomputed from the full
response history of a session.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/estimator.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: EAP / MAP ability estimation with MAP-to-EAP fallback

import math
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from adaptive_cat.config import EstimationMethod
from adaptive_cat.components.item_bank import ItemBank
from adaptive_cat.components.response_model import category_probabilities, log_probability_derivatives
from adaptive_cat.errors import EstimationNonConvergence

logger = logging.getLogger(__name__)

PRIOR_MEAN = 0.0
PRIOR_SD = 1.0

# (item_id, category)
Response = Tuple[int, int]


@dataclass(frozen=True)
class AbilityEstimate:
    """Point estimate of theta with its standard error."""
    theta: float
    sem: float
    degraded: bool = False


class AbilityEstimator:
    """
    Estimate theta from a response history.

    Parameters:
    ----------
    bank: ItemBank
        calibrated items the responses refer to
    method: EstimationMethod
        EAP (posterior mean) or MAP (posterior mode)
    n_quadrature: int
        number of equally spaced quadrature points for EAP
    theta_bound: float
        quadrature spans [-theta_bound, theta_bound]
    max_iterations: int
        Newton iteration budget for MAP
    tolerance: float
        MAP stops when the Newton step is smaller than this

    The per-item log-probability tables on the quadrature grid are built once
    here and never written afterwards, so one estimator may serve many
    sessions at once.
    """

    def __init__(
        self,
        bank: ItemBank,
        method: EstimationMethod = EstimationMethod.EAP,
        n_quadrature: int = 61,
        theta_bound: float = 6.0,
        max_iterations: int = 50,
        tolerance: float = 1e-6,
        max_step: float = 1.0,
    ):
        if n_quadrature < 3:
            raise ValueError(f"n_quadrature must be >= 3: {n_quadrature}")
        self.bank = bank
        self.method = EstimationMethod(method)
        self.max_iterations = int(max_iterations)
        self.tolerance = float(tolerance)
        self.max_step = float(max_step)

        grid = np.linspace(-theta_bound, theta_bound, n_quadrature)
        grid.setflags(write=False)
        self.grid = grid
        self._log_prior = -0.5 * ((grid - PRIOR_MEAN) / PRIOR_SD) ** 2

        tables = {}
        for item in bank:
            # shape (k, n_quadrature); row j-1 is ln P(x = j | grid)
            table = np.log(np.maximum(category_probabilities(grid, item), 1e-300)).T.copy()
            table.setflags(write=False)
            tables[item.item_id] = table
        self._log_tables = MappingProxyType(tables)

    def estimate(self, responses: Iterable[Response]) -> AbilityEstimate:
        """
        Estimate theta with the configured method.

        An empty history returns the prior (theta 0, SEM 1). When MAP does
        not converge, the EAP estimate on the same data is returned with
        degraded=True.
        """
        responses = list(responses)
        if not responses:
            return AbilityEstimate(theta=PRIOR_MEAN, sem=PRIOR_SD)

        if self.method is EstimationMethod.EAP:
            return self.eap(responses)

        try:
            return self.map(responses)
        except EstimationNonConvergence as e:
            logger.warning(
                "MAP did not converge after %d iterations (%s); falling back to EAP", e.iterations, e
            )
            fallback = self.eap(responses)
            return AbilityEstimate(theta=fallback.theta, sem=fallback.sem, degraded=True)

    def log_posterior_on_grid(self, responses: Sequence[Response]) -> np.ndarray:
        """Unnormalized log posterior evaluated at every quadrature point."""
        log_post = self._log_prior.copy()
        for item_id, category in responses:
            log_post += self._log_tables[item_id][category - 1]
        return log_post

    def eap(self, responses: Sequence[Response]) -> AbilityEstimate:
        """Posterior mean and posterior standard deviation by quadrature."""
        if not responses:
            return AbilityEstimate(theta=PRIOR_MEAN, sem=PRIOR_SD)

        log_post = self.log_posterior_on_grid(responses)
        weights = np.exp(log_post - log_post.max())
        weights /= weights.sum()

        mean = float(np.dot(weights, self.grid))
        var = float(np.dot(weights, (self.grid - mean) ** 2))
        return AbilityEstimate(theta=mean, sem=math.sqrt(var))

    def _evaluate(self, theta: float, responses: Sequence[Response]) -> Tuple[float, float, float]:
        # log posterior, gradient and second derivative at theta
        z = (theta - PRIOR_MEAN) / PRIOR_SD
        log_post = -0.5 * z ** 2
        grad = -z / PRIOR_SD
        hess = -1.0 / PRIOR_SD ** 2
        for item_id, category in responses:
            log_p, d1, d2 = log_probability_derivatives(theta, self.bank[item_id], category)
            log_post += log_p
            grad += d1
            hess += d2
        return log_post, grad, hess

    def map(self, responses: Sequence[Response], start: Optional[float] = None) -> AbilityEstimate:
        """
        Posterior mode by Newton iteration with step halving.

        Raises:
        -------
        EstimationNonConvergence
            if the mode is not reached within max_iterations
        """
        if not responses:
            return AbilityEstimate(theta=PRIOR_MEAN, sem=PRIOR_SD)

        theta = PRIOR_MEAN if start is None else float(start)
        log_post, grad, hess = self._evaluate(theta, responses)

        for iteration in range(1, self.max_iterations + 1):
            if not (math.isfinite(grad) and math.isfinite(hess)) or hess >= 0:
                raise EstimationNonConvergence(
                    f"log posterior is not concave at theta={theta:.4f}", iterations=iteration
                )

            step = max(-self.max_step, min(self.max_step, -grad / hess))
            for _ in range(30):
                new_theta = theta + step
                new_log_post, new_grad, new_hess = self._evaluate(new_theta, responses)
                if new_log_post >= log_post - 1e-12:
                    break
                step *= 0.5
            else:
                raise EstimationNonConvergence(
                    f"line search failed at theta={theta:.4f}", iterations=iteration
                )

            theta, log_post, grad, hess = new_theta, new_log_post, new_grad, new_hess
            if abs(step) < self.tolerance:
                if hess >= 0:
                    break
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("[MAP] converged theta=%.4f iterations=%d", theta, iteration)
                return AbilityEstimate(theta=theta, sem=1.0 / math.sqrt(-hess))

        raise EstimationNonConvergence(
            f"no convergence within {self.max_iterations} iterations (theta={theta:.4f})",
            iterations=self.max_iterations,
        )
