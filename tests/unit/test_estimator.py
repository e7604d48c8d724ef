import logging

import numpy as np
import pytest

from adaptive_cat.config import EstimationMethod
from adaptive_cat.components.estimator import AbilityEstimate, AbilityEstimator
from adaptive_cat.errors import EstimationNonConvergence


@pytest.mark.parametrize("method", [EstimationMethod.EAP, EstimationMethod.MAP])
def test_empty_history_returns_prior_exactly(bank, method):
    est = AbilityEstimator(bank, method=method).estimate([])
    assert est == AbilityEstimate(theta=0.0, sem=1.0, degraded=False)


def test_eap_moves_with_responses(bank):
    estimator = AbilityEstimator(bank)
    # items 1, 2, 5 are forward keyed
    high = estimator.estimate([(1, 5), (2, 5), (5, 4)])
    low = estimator.estimate([(1, 1), (2, 1), (5, 2)])
    assert high.theta > 0.5
    assert low.theta < -0.5
    assert 0.0 < high.sem < 1.0
    assert 0.0 < low.sem < 1.0


def test_reverse_keyed_answers_pull_theta_the_other_way(bank):
    estimator = AbilityEstimator(bank)
    # items 3 and 4 are reverse keyed
    assert estimator.estimate([(3, 5), (4, 5)]).theta < 0.0
    assert estimator.estimate([(3, 1), (4, 1)]).theta > 0.0


def test_sem_shrinks_as_responses_accumulate(bank):
    estimator = AbilityEstimator(bank)
    history = [(1, 3), (2, 4), (5, 3), (8, 3), (12, 4), (13, 3)]
    sems = [estimator.estimate(history[:n]).sem for n in range(1, len(history) + 1)]
    assert sems[-1] < sems[0]


def test_estimate_is_order_independent(bank):
    estimator = AbilityEstimator(bank)
    history = [(1, 4), (3, 2), (8, 5), (11, 1)]
    a = estimator.estimate(history)
    b = estimator.estimate(list(reversed(history)))
    assert a.theta == pytest.approx(b.theta, abs=1e-12)
    assert a.sem == pytest.approx(b.sem, abs=1e-12)


def test_map_agrees_with_eap_on_moderate_data(bank):
    history = [(1, 4), (2, 3), (3, 2), (5, 4), (8, 3), (9, 2), (12, 4), (18, 3)]
    eap = AbilityEstimator(bank, method=EstimationMethod.EAP).estimate(history)
    map_ = AbilityEstimator(bank, method=EstimationMethod.MAP).estimate(history)
    assert not map_.degraded
    assert map_.theta == pytest.approx(eap.theta, abs=0.1)
    assert map_.sem == pytest.approx(eap.sem, abs=0.1)


def test_map_gradient_vanishes_at_mode(bank):
    estimator = AbilityEstimator(bank, method=EstimationMethod.MAP)
    history = [(1, 5), (2, 4), (6, 1), (13, 5)]
    est = estimator.map(history)
    _, grad, hess = estimator._evaluate(est.theta, history)
    assert abs(grad) < 1e-4
    assert est.sem == pytest.approx(1.0 / np.sqrt(-hess))


def test_map_raises_when_iterations_run_out(bank):
    estimator = AbilityEstimator(bank, method=EstimationMethod.MAP, max_iterations=1)
    with pytest.raises(EstimationNonConvergence) as excinfo:
        estimator.map([(1, 5), (2, 5), (5, 5), (8, 5)])
    assert excinfo.value.iterations == 1


def test_map_non_convergence_falls_back_to_eap(bank, caplog):
    history = [(1, 5), (2, 5), (5, 5), (8, 5)]
    estimator = AbilityEstimator(bank, method=EstimationMethod.MAP, max_iterations=1)
    with caplog.at_level(logging.WARNING, logger="adaptive_cat.components.estimator"):
        est = estimator.estimate(history)
    eap = AbilityEstimator(bank, method=EstimationMethod.EAP).estimate(history)
    assert est.degraded
    assert est.theta == pytest.approx(eap.theta)
    assert est.sem == pytest.approx(eap.sem)
    assert "falling back to EAP" in caplog.text


def test_quadrature_tables_are_read_only(bank):
    estimator = AbilityEstimator(bank)
    with pytest.raises(ValueError):
        estimator.grid[0] = 1.0
    with pytest.raises(ValueError):
        estimator._log_tables[1][0, 0] = 0.0
    with pytest.raises(TypeError):
        estimator._log_tables[1] = None


def test_unknown_item_in_history_is_rejected(bank):
    with pytest.raises(KeyError):
        AbilityEstimator(bank).estimate([(999, 3)])
