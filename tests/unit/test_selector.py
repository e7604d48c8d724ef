import numpy as np
import pytest

from adaptive_cat.config import ExposureControl
from adaptive_cat.components.response_model import item_information
from adaptive_cat.components.selector import rank_by_information, select_next_item, select_start_item
from conftest import make_item


def test_start_item_reproducible(bank):
    items = list(bank)
    first = select_start_item(items, np.random.default_rng(123))
    second = select_start_item(items, np.random.default_rng(123))
    assert first == second
    assert first in bank


def test_start_item_varies_across_streams(bank):
    items = list(bank)
    picks = {select_start_item(items, np.random.default_rng(seed)) for seed in range(50)}
    assert len(picks) > 5


def test_start_item_empty_list():
    with pytest.raises(ValueError):
        select_start_item([], np.random.default_rng(0))


def test_next_item_empty_list():
    with pytest.raises(ValueError):
        select_next_item(0.0, [], np.random.default_rng(0))


def test_rank_by_information_orders_descending(bank):
    ranked = rank_by_information(0.5, list(bank))
    infos = [info for _, info in ranked]
    assert infos == sorted(infos, reverse=True)
    assert sorted(i for i, _ in ranked) == list(bank.item_ids)
    top_id, top_info = ranked[0]
    assert top_info == pytest.approx(item_information(0.5, bank[top_id]))


def test_ties_go_to_lowest_id():
    twins = [make_item(4), make_item(2), make_item(9)]
    ranked = rank_by_information(0.0, twins)
    assert [i for i, _ in ranked] == [2, 4, 9]
    assert select_next_item(0.0, twins, np.random.default_rng(0)) == 2


def test_without_exposure_control_the_most_informative_item_is_chosen(bank):
    items = list(bank)
    expected = rank_by_information(-1.2, items)[0][0]
    for seed in range(10):
        assert select_next_item(-1.2, items, np.random.default_rng(seed)) == expected


def test_top_k_of_one_is_deterministic(bank):
    exposure = ExposureControl(enabled=True, top_k=1)
    items = list(bank)
    expected = rank_by_information(0.8, items)[0][0]
    for seed in range(10):
        assert select_next_item(0.8, items, np.random.default_rng(seed), exposure=exposure) == expected


def test_randomesque_draws_stay_within_top_k(bank):
    exposure = ExposureControl(enabled=True, top_k=3)
    items = list(bank)
    top3 = {i for i, _ in rank_by_information(0.0, items)[:3]}
    rng = np.random.default_rng(2024)
    picks = [select_next_item(0.0, items, rng, exposure=exposure) for _ in range(300)]
    assert set(picks) == top3


def test_top_k_larger_than_candidates(small_bank):
    exposure = ExposureControl(enabled=True, top_k=10)
    candidates = small_bank.remaining([1])
    rng = np.random.default_rng(5)
    picks = {select_next_item(0.0, candidates, rng, exposure=exposure) for _ in range(100)}
    assert picks == {2, 3}


def test_dynamic_question_selection(bank):
    """Selecting repeatedly from the remaining items never repeats one."""
    rng = np.random.default_rng(11)
    exposure = ExposureControl(enabled=True, top_k=3)
    administered = []
    while len(administered) < len(bank):
        candidates = bank.remaining(administered)
        q = select_next_item(0.0, candidates, rng, exposure=exposure)
        assert q in [c.item_id for c in candidates]
        assert q not in administered
        administered.append(q)
    assert sorted(administered) == list(bank.item_ids)
