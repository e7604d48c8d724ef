from pathlib import Path

import pytest

from adaptive_cat.config import CATConfig, EstimationMethod, ExposureControl
from adaptive_cat.components.item_bank import Item, ItemBank, load_item_bank_csv

ROOT = Path(__file__).resolve().parent.parent
ITEM_BANK_CSV = ROOT / "data" / "item_bank" / "mach_iv_items.csv"
CONFIG_YAML = ROOT / "configs" / "config.yaml"


def make_item(item_id=1, a=1.5, thresholds=(-2.0, -0.7, 0.6, 1.9), reverse=False, dimension=None):
    return Item(
        item_id=item_id,
        category_count=len(thresholds) + 1,
        discrimination=a,
        thresholds=tuple(thresholds),
        reverse_keyed=reverse,
        dimension=dimension,
    )


@pytest.fixture(scope="session")
def bank() -> ItemBank:
    return load_item_bank_csv(str(ITEM_BANK_CSV))


@pytest.fixture
def scenario_config() -> CATConfig:
    # min 8, max 15, SEM 0.30, EAP, randomesque 3
    return CATConfig(
        estimation_method=EstimationMethod.EAP,
        min_items=8,
        max_items=15,
        min_sem=0.30,
        exposure_control=ExposureControl(enabled=True, top_k=3),
    )


@pytest.fixture
def small_bank() -> ItemBank:
    return ItemBank([
        make_item(1, a=1.2, thresholds=(-1.5, -0.5, 0.5, 1.5)),
        make_item(2, a=2.0, thresholds=(-1.0, -0.2, 0.4, 1.2)),
        make_item(3, a=1.6, thresholds=(-2.2, -1.0, 0.1, 1.4), reverse=True),
    ])
