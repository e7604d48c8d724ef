import numpy as np
import pytest

from adaptive_cat.config import CATConfig, EstimationMethod, ExposureControl
from adaptive_cat.components.estimator import AbilityEstimator
from adaptive_cat.components.response_model import sample_response
from adaptive_cat.components.session import CATSession
from adaptive_cat.components.stopping import SessionStatus
from adaptive_cat.errors import ConfigurationError, InputError


def _neutral(item):
    return 3


def test_new_session_reports_prior(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=0)
    assert session.theta == 0.0
    assert session.sem == 1.0
    assert session.status is SessionStatus.IN_PROGRESS
    assert session.history == ()
    result = session.result()
    assert (result.theta_hat, result.sem, result.n_items) == (0.0, 1.0, 0)


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_simulated_high_trait_examinee(bank, scenario_config, seed):
    true_theta = 1.5
    response_rng = np.random.default_rng(1000 + seed)
    session = CATSession(bank, scenario_config, seed=seed)
    result = session.run(lambda item: sample_response(true_theta, item, response_rng))

    assert result.status in (SessionStatus.STOPPED_PRECISION, SessionStatus.STOPPED_MAX)
    assert 8 <= result.n_items <= 15
    assert abs(result.theta_hat - true_theta) < 1.0
    assert len(result.theta_history) == result.n_items
    assert result.sem == result.sem_history[-1]


@pytest.mark.parametrize("category", [0, 6, -1])
def test_out_of_range_category_is_rejected(bank, scenario_config, category):
    session = CATSession(bank, scenario_config, seed=1)
    item = session.next_item()
    session.submit_response(item.item_id, 3)
    item = session.next_item()
    before = (session.history, session.theta, session.sem)

    with pytest.raises(InputError):
        session.submit_response(item.item_id, category)

    assert (session.history, session.theta, session.sem) == before
    assert session.pending_item_id == item.item_id
    # resubmitting a valid answer is accepted
    session.submit_response(item.item_id, 4)
    assert len(session.history) == 2


@pytest.mark.parametrize("category", [2.0, "3", True, None])
def test_non_integer_category_is_rejected(bank, scenario_config, category):
    session = CATSession(bank, scenario_config, seed=1)
    item = session.next_item()
    with pytest.raises(InputError):
        session.submit_response(item.item_id, category)
    assert session.history == ()


def test_numpy_integer_category_is_accepted(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=1)
    item = session.next_item()
    session.submit_response(item.item_id, np.int64(2))
    assert session.history[0].category == 2


def test_response_without_presented_item_is_rejected(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=2)
    with pytest.raises(InputError):
        session.submit_response(1, 3)


def test_response_for_other_item_is_rejected(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=2)
    item = session.next_item()
    other = next(i for i in bank.item_ids if i != item.item_id)
    with pytest.raises(InputError):
        session.submit_response(other, 3)
    assert session.history == ()


def test_next_item_is_idempotent_until_answered(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=3)
    first = session.next_item()
    assert session.next_item() is first


def test_finished_session_rejects_responses(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=4)
    result = session.run(_neutral)
    assert session.is_finished
    assert session.next_item() is None
    with pytest.raises(InputError):
        session.submit_response(result.administered_items[0].item_id, 3)
    assert session.result() == result


def test_items_are_never_repeated(bank, scenario_config):
    for seed in range(10):
        result = CATSession(bank, scenario_config, seed=seed).run(_neutral)
        ids = [a.item_id for a in result.administered_items]
        assert len(ids) == len(set(ids))
        assert scenario_config.min_items <= len(ids) <= scenario_config.max_items


def test_high_sem_runs_to_max_items(bank):
    config = CATConfig(min_items=3, max_items=6, min_sem=0.01)
    result = CATSession(bank, config, seed=5).run(_neutral)
    assert result.status is SessionStatus.STOPPED_MAX
    assert result.n_items == 6


def test_same_seed_gives_same_session(bank, scenario_config):
    def responder(item):
        return 4 if item.item_id % 2 else 2

    a = CATSession(bank, scenario_config, seed=9).run(responder)
    b = CATSession(bank, scenario_config, seed=9).run(responder)
    assert a.administered_items == b.administered_items
    assert a.theta_hat == b.theta_hat
    assert a.sem == b.sem


def test_small_bank_exhausts_below_min_items(small_bank):
    config = CATConfig(min_items=5, max_items=10, min_sem=0.30)
    result = CATSession(small_bank, config, seed=0).run(_neutral)
    assert result.status is SessionStatus.STOPPED_EXHAUSTED
    assert result.n_items == 3


def test_small_bank_exhausts_above_min_items(small_bank):
    config = CATConfig(min_items=2, max_items=10, min_sem=0.05)
    result = CATSession(small_bank, config, seed=0).run(_neutral)
    assert result.status is SessionStatus.STOPPED_EXHAUSTED
    assert sorted(a.item_id for a in result.administered_items) == [1, 2, 3]


def test_handle_event(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=6, session_id="abc")
    item = session.next_item()
    status = session.handle_event({"session_id": "abc", "item_id": item.item_id, "category": 5})
    assert status is SessionStatus.IN_PROGRESS
    assert session.history[0].category == 5


def test_handle_event_for_other_session_is_rejected(bank, scenario_config):
    session = CATSession(bank, scenario_config, seed=6, session_id="abc")
    item = session.next_item()
    with pytest.raises(InputError):
        session.handle_event({"session_id": "xyz", "item_id": item.item_id, "category": 5})
    with pytest.raises(InputError):
        session.handle_event({"session_id": "abc", "item_id": item.item_id})
    assert session.history == ()


def test_estimator_must_match_config(bank, scenario_config):
    map_estimator = AbilityEstimator(bank, method=EstimationMethod.MAP)
    with pytest.raises(ConfigurationError):
        CATSession(bank, scenario_config, estimator=map_estimator)


def test_shared_estimator_serves_many_sessions(bank, scenario_config):
    estimator = AbilityEstimator(bank)
    shared = [CATSession(bank, scenario_config, estimator=estimator, seed=s).run(_neutral) for s in range(3)]
    own = [CATSession(bank, scenario_config, seed=s).run(_neutral) for s in range(3)]
    for a, b in zip(shared, own):
        assert a.administered_items == b.administered_items
        assert a.theta_hat == b.theta_hat


def test_map_session_runs_to_completion(bank):
    config = CATConfig(
        estimation_method=EstimationMethod.MAP,
        exposure_control=ExposureControl(enabled=True, top_k=3),
    )
    rng = np.random.default_rng(77)
    result = CATSession(bank, config, seed=8).run(lambda item: sample_response(-0.5, item, rng))
    assert result.status.is_terminal
    assert 8 <= result.n_items <= 15


def test_extreme_responses_mark_degraded_estimate(bank):
    config = CATConfig(estimation_method=EstimationMethod.MAP, min_items=3, max_items=5)
    estimator = AbilityEstimator(bank, method=EstimationMethod.MAP, max_iterations=1)
    session = CATSession(bank, config, estimator=estimator, seed=0)
    result = session.run(lambda item: 1 if item.reverse_keyed else 5)
    assert result.degraded_estimate
    assert result.theta_hat > 1.0


def test_result_to_dict(bank, scenario_config):
    result = CATSession(bank, scenario_config, seed=0, session_id="s1").run(_neutral)
    d = result.to_dict()
    assert d["session_id"] == "s1"
    assert d["status"] == result.status.value
    assert len(d["administered_items"]) == result.n_items
