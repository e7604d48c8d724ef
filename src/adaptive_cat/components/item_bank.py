# -*- coding: utf-8 -*-

"""
Calibrated item bank for the adaptive questionnaire.

Items are graded-response (Samejima) items with one discrimination and k-1
ordered boundary locations. Reverse-keyed items get their slope sign-flipped
once, when the item is built, so that a raw "1" on a reverse item moves the
trait estimate up. The slope-intercept intercepts d_j = -a * b_j are kept, which
makes a reverse item at theta behave like its non-reversed twin at -theta.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/item_bank.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Immutable item records and item bank loaders

import math
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from adaptive_cat.errors import ConfigurationError

logger = logging.getLogger(__name__)

# CSV columns holding the boundary locations are named b1, b2, ...
THRESHOLD_PREFIX = "b"


@dataclass(frozen=True)
class Item:
    """
    One calibrated Likert item.

    slope and intercepts are derived in __post_init__ and are what the
    response model uses; discrimination and thresholds keep the calibrated
    values as loaded.
    """
    item_id: int
    category_count: int
    discrimination: float
    thresholds: Tuple[float, ...]
    reverse_keyed: bool = False
    display_text: str = ""
    dimension: Optional[str] = None
    slope: float = field(init=False, repr=False)
    intercepts: Tuple[float, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        thresholds = tuple(float(b) for b in self.thresholds)
        object.__setattr__(self, "thresholds", thresholds)
        _validate_item(self)

        a = float(self.discrimination)
        object.__setattr__(self, "discrimination", a)
        object.__setattr__(self, "slope", -a if self.reverse_keyed else a)
        object.__setattr__(self, "intercepts", tuple(-a * b for b in thresholds))


def _validate_item(item: Item) -> None:
    if isinstance(item.item_id, bool) or not isinstance(item.item_id, (int, np.integer)):
        raise ConfigurationError(f"item id must be an integer: {item.item_id!r}")
    if item.category_count < 2:
        raise ConfigurationError(
            f"item {item.item_id}: category_count must be >= 2: {item.category_count}"
        )
    if len(item.thresholds) != item.category_count - 1:
        raise ConfigurationError(
            f"item {item.item_id}: expected {item.category_count - 1} thresholds, "
            f"got {len(item.thresholds)}"
        )
    if not all(math.isfinite(b) for b in item.thresholds):
        raise ConfigurationError(f"item {item.item_id}: thresholds must be finite")
    if any(b2 <= b1 for b1, b2 in zip(item.thresholds, item.thresholds[1:])):
        raise ConfigurationError(
            f"item {item.item_id}: thresholds must be strictly increasing: {list(item.thresholds)}"
        )
    a = item.discrimination
    if not isinstance(a, (int, float, np.floating)) or not math.isfinite(a) or a <= 0:
        raise ConfigurationError(f"item {item.item_id}: discrimination must be finite and > 0: {a!r}")


class ItemBank:
    """
    Ordered, read-only collection of unique items.

    Shared by every session; nothing in the engine writes to it after load.
    """

    def __init__(self, items: Iterable[Item]):
        items = tuple(items)
        if not items:
            raise ConfigurationError("item bank is empty")

        index: Dict[int, Item] = {}
        for item in items:
            if item.item_id in index:
                raise ConfigurationError(f"duplicate item id: {item.item_id}")
            index[item.item_id] = item

        self._items = items
        self._index = MappingProxyType(index)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._index

    def __getitem__(self, item_id: int) -> Item:
        try:
            return self._index[item_id]
        except KeyError:
            raise KeyError(f"unknown item id: {item_id}") from None

    def __reduce__(self):
        # the read-only index view cannot be pickled; rebuild it from the items
        return (ItemBank, (self._items,))

    def __repr__(self) -> str:
        return f"ItemBank(n_items={len(self)}, reverse_keyed={len(self.reverse_keyed_ids)})"

    @property
    def item_ids(self) -> Tuple[int, ...]:
        return tuple(item.item_id for item in self._items)

    @property
    def reverse_keyed_ids(self) -> Tuple[int, ...]:
        return tuple(item.item_id for item in self._items if item.reverse_keyed)

    def get(self, item_id: int) -> Optional[Item]:
        return self._index.get(item_id)

    def remaining(self, administered: Iterable[int]) -> List[Item]:
        """
        Items not yet administered, in bank order.

        Parameters:
        ----------
        administered: Iterable[int]
            ids already presented in the session

        Returns:
        -------
        List[Item]
            unadministered items
        """
        seen = set(administered)
        return [item for item in self._items if item.item_id not in seen]


def item_from_record(record: Mapping[str, Any]) -> Item:
    """
    Build an Item from one load record.

    Accepted keys: id, category_count, discrimination (or a), thresholds
    (or b1..b{k-1}), reverse (or reverse_flag / reverse_keyed), text (or
    display_text), dimension.
    """
    try:
        item_id = record["id"]
        a = record["discrimination"] if "discrimination" in record else record["a"]
    except KeyError as e:
        raise ConfigurationError(f"item record is missing {e.args[0]!r}: {dict(record)}") from None

    if "thresholds" in record:
        thresholds = list(record["thresholds"])
    else:
        keys = sorted(
            (k for k in record if k.startswith(THRESHOLD_PREFIX) and k[len(THRESHOLD_PREFIX):].isdigit()),
            key=lambda k: int(k[len(THRESHOLD_PREFIX):]),
        )
        thresholds = [record[k] for k in keys if not _is_missing(record[k])]

    category_count = record.get("category_count", len(thresholds) + 1)

    reverse = False
    for key in ("reverse", "reverse_flag", "reverse_keyed"):
        if key in record and not _is_missing(record[key]):
            reverse = _to_bool(record[key])
            break

    text = record.get("text", record.get("display_text", ""))
    dimension = record.get("dimension")

    try:
        return Item(
            item_id=int(item_id),
            category_count=int(category_count),
            discrimination=float(a),
            thresholds=tuple(float(b) for b in thresholds),
            reverse_keyed=reverse,
            display_text="" if _is_missing(text) else str(text),
            dimension=None if _is_missing(dimension) else str(dimension),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"malformed item record {item_id!r}: {e}") from e


def load_item_bank(records: Iterable[Mapping[str, Any]]) -> ItemBank:
    """
    Build an ItemBank from already-calibrated item records.

    Raises:
    -------
    ConfigurationError
        on malformed parameters, duplicate ids, or an empty collection
    """
    bank = ItemBank(item_from_record(r) for r in records)
    logger.info("Loaded item bank: %d items (%d reverse-keyed)", len(bank), len(bank.reverse_keyed_ids))
    return bank


def load_item_bank_csv(csv_path: str) -> ItemBank:
    """
    Load an item bank from a CSV file with one row per item.

    Parameters:
    ----------
    csv_path: str
        path to a CSV with columns id, category_count, discrimination,
        b1..b{k-1}, reverse, text and optionally dimension

    Returns:
    -------
    ItemBank
    """
    df = pd.read_csv(csv_path)
    required = ["id", "discrimination"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Missing columns in {csv_path}: {missing}")
    return load_item_bank(df.to_dict(orient="records"))


def load_item_bank_from_config(cfg: Dict[str, Any]) -> ItemBank:
    """Load the bank named by cfg["item_bank"] (either a csv path or inline records)."""
    bank_cfg = cfg.get("item_bank", {}) or {}
    if "items" in bank_cfg:
        return load_item_bank(bank_cfg["items"])
    path = bank_cfg.get("path")
    if not path:
        raise ConfigurationError("item_bank.path or item_bank.items must be provided.")
    return load_item_bank_csv(path)


def _is_missing(v: Any) -> bool:
    if v is None:
        return True
    try:
        return bool(pd.isna(v))
    except (TypeError, ValueError):
        return False


def _to_bool(v: Any) -> bool:
    if isinstance(v, str):
        text = v.strip().lower()
        if text in ("true", "yes", "y", "1", "t"):
            return True
        if text in ("false", "no", "n", "0", "f", ""):
            return False
        raise ConfigurationError(f"cannot interpret reverse flag: {v!r}")
    return bool(v)
