# -*- coding: utf-8 -*-

"""
This module provides functions to generate reproducible random seeds for
adaptive sessions and simulated examinees, so that every examinee owns an
independent stream regardless of worker count or completion order.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/rng.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Random seed generation for sessions and simulated examinees

import hashlib
from typing import Hashable

import numpy as np


def make_examinee_seed(run_seed: int, examinee: Hashable, stream: str = "session") -> int:
    """
    generate a reproducible random seed for one examinee of a run.
    Parameters:
    ----------
    run_seed: int
        random seed of the whole run
    examinee: Hashable
        examinee index or identifier
    stream: str
        purpose of the stream ("session" for item selection,
        "responses" for simulated answers)

    Returns:
    -------
    int
        generated random seed
    """
    seed_str = f"{stream}|{run_seed}_{examinee}".encode("utf-8")
    seed_hash = hashlib.sha256(seed_str).hexdigest()
    return int(seed_hash[:8], 16)  # convert to 32-bit integer


def make_rng(run_seed: int, examinee: Hashable, stream: str = "session") -> np.random.Generator:
    return np.random.default_rng(make_examinee_seed(run_seed, examinee, stream))
