# -*- coding: utf-8 -*-

"""
One adaptive administration (examinee session).

The session is an explicit state machine driven from outside:
next_item() presents an item, submit_response() records the answer,
recomputes theta and SEM on the full history and evaluates the stopping rule.
A session owns its history and random stream; the item bank and the
estimator are shared read-only.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/components/session.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: CAT session orchestrating selection, estimation and stopping

import uuid
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from adaptive_cat.config import CATConfig
from adaptive_cat.components.estimator import PRIOR_MEAN, PRIOR_SD, AbilityEstimator
from adaptive_cat.components.item_bank import Item, ItemBank
from adaptive_cat.components.selector import select_next_item, select_start_item
from adaptive_cat.components.stopping import SessionStatus, evaluate_stopping_rule
from adaptive_cat.errors import ConfigurationError, InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdministeredItem:
    item_id: int
    category: int


@dataclass(frozen=True)
class SessionResult:
    """Snapshot of a session; final once status is terminal."""
    session_id: str
    theta_hat: float
    sem: float
    status: SessionStatus
    administered_items: Tuple[AdministeredItem, ...]
    degraded_estimate: bool = False
    theta_history: Tuple[float, ...] = ()
    sem_history: Tuple[float, ...] = ()

    @property
    def n_items(self) -> int:
        return len(self.administered_items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "theta_hat": self.theta_hat,
            "sem": self.sem,
            "status": self.status.value,
            "degraded_estimate": self.degraded_estimate,
            "administered_items": [
                {"item_id": a.item_id, "category": a.category} for a in self.administered_items
            ],
        }


class CATSession:
    """
    Parameters:
    ----------
    bank: ItemBank
        calibrated items
    config: CATConfig
        administration design
    estimator: AbilityEstimator, optional
        shared estimator; built from config.estimation_method when omitted
    rng: np.random.Generator, optional
        session random stream (start rule and randomesque draws)
    seed: int, optional
        seed for a new stream when rng is omitted
    session_id: str, optional
        identifier echoed in results and checked on response events
    """

    def __init__(
        self,
        bank: ItemBank,
        config: CATConfig,
        estimator: Optional[AbilityEstimator] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        session_id: Optional[str] = None,
    ):
        if estimator is None:
            estimator = AbilityEstimator(bank, method=config.estimation_method)
        elif estimator.bank is not bank:
            raise ConfigurationError("estimator was built for a different item bank")
        elif estimator.method != config.estimation_method:
            raise ConfigurationError(
                f"estimator method {estimator.method.value} does not match "
                f"config {config.estimation_method.value}"
            )

        self.bank = bank
        self.config = config
        self.estimator = estimator
        self.session_id = session_id or uuid.uuid4().hex
        self._rng = rng if rng is not None else np.random.default_rng(seed)

        self._history: List[AdministeredItem] = []
        self._theta = PRIOR_MEAN
        self._sem = PRIOR_SD
        self._status = SessionStatus.IN_PROGRESS
        self._degraded = False
        self._pending: Optional[int] = None
        self._theta_history: List[float] = []
        self._sem_history: List[float] = []

    @property
    def theta(self) -> float:
        return self._theta

    @property
    def sem(self) -> float:
        return self._sem

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_finished(self) -> bool:
        return self._status.is_terminal

    @property
    def degraded_estimate(self) -> bool:
        return self._degraded

    @property
    def history(self) -> Tuple[AdministeredItem, ...]:
        return tuple(self._history)

    @property
    def administered_ids(self) -> List[int]:
        return [a.item_id for a in self._history]

    @property
    def pending_item_id(self) -> Optional[int]:
        return self._pending

    def next_item(self) -> Optional[Item]:
        """
        Item awaiting a response, selecting one if none is pending.
        Returns None once the session is finished.
        """
        if self.is_finished:
            return None
        if self._pending is None:
            if not self._history:
                self._pending = select_start_item(list(self.bank), self._rng, self.config.start_rule)
            else:
                self._pending = select_next_item(
                    self._theta,
                    self.bank.remaining(self.administered_ids),
                    self._rng,
                    exposure=self.config.exposure_control,
                    criterion=self.config.selection_criterion,
                )
        return self.bank[self._pending]

    def submit_response(self, item_id: int, category: int) -> SessionStatus:
        """
        Record the response to the pending item.

        Raises:
        -------
        InputError
            if the session is finished, no item is pending, the item is not
            the pending one, or the category is outside [1, k]. The session
            is left unchanged and the caller may resubmit.
        """
        if self.is_finished:
            raise InputError(f"session {self.session_id} is finished ({self._status.value})")
        if self._pending is None:
            raise InputError("no item is awaiting a response; call next_item() first")
        if item_id != self._pending:
            raise InputError(f"response for item {item_id} but item {self._pending} is pending")

        item = self.bank[self._pending]
        if isinstance(category, bool) or not isinstance(category, (int, np.integer)):
            raise InputError(f"category must be an integer: {category!r}")
        if not 1 <= category <= item.category_count:
            raise InputError(
                f"category {category} out of range [1, {item.category_count}] for item {item.item_id}"
            )

        self._history.append(AdministeredItem(item_id=item.item_id, category=int(category)))
        self._pending = None

        estimate = self.estimator.estimate((a.item_id, a.category) for a in self._history)
        self._theta = estimate.theta
        self._sem = estimate.sem
        self._degraded = self._degraded or estimate.degraded
        self._theta_history.append(estimate.theta)
        self._sem_history.append(estimate.sem)

        remaining = len(self.bank) - len(self._history)
        self._status = evaluate_stopping_rule(len(self._history), self._sem, remaining, self.config)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "[Session %s] item=%d category=%d theta=%.3f sem=%.3f status=%s",
                self.session_id, item.item_id, category, self._theta, self._sem, self._status.value,
            )
        return self._status

    def handle_event(self, event: Mapping[str, Any]) -> SessionStatus:
        """Apply a response event {session_id, item_id, category}."""
        event_session = event.get("session_id")
        if event_session is not None and event_session != self.session_id:
            raise InputError(f"event for session {event_session} sent to session {self.session_id}")
        try:
            item_id = event["item_id"]
            category = event["category"]
        except KeyError as e:
            raise InputError(f"response event is missing {e.args[0]!r}") from None
        return self.submit_response(item_id, category)

    def run(self, responder: Callable[[Item], int]) -> SessionResult:
        """
        Drive the session to termination with a response source.

        Parameters:
        ----------
        responder: Callable[[Item], int]
            returns the category chosen for the presented item

        Returns:
        -------
        SessionResult
        """
        item = self.next_item()
        while item is not None:
            self.submit_response(item.item_id, responder(item))
            item = self.next_item()
        return self.result()

    def result(self) -> SessionResult:
        return SessionResult(
            session_id=self.session_id,
            theta_hat=self._theta,
            sem=self._sem,
            status=self._status,
            administered_items=tuple(self._history),
            degraded_estimate=self._degraded,
            theta_history=tuple(self._theta_history),
            sem_history=tuple(self._sem_history),
        )
