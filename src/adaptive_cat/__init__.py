"""
adaptive_cat
Computerized adaptive testing engine for graded-response Likert questionnaires
"""
from .config import (
    CATConfig,
    EstimationMethod,
    ExposureControl,
    SelectionCriterion,
    StartRule,
    load_cat_config,
    load_config,
)
from .errors import ConfigurationError, EstimationNonConvergence, InputError
from .components.item_bank import Item, ItemBank, load_item_bank, load_item_bank_csv
from .components.response_model import category_probabilities, item_information, sample_response
from .components.estimator import AbilityEstimate, AbilityEstimator
from .components.selector import select_next_item, select_start_item
from .components.stopping import SessionStatus, evaluate_stopping_rule
from .components.session import AdministeredItem, CATSession, SessionResult
from .components.scoring import summarize_session
from .simulation.validation import ValidationReport, run_validation

__all__ = [
    "CATConfig",
    "EstimationMethod",
    "ExposureControl",
    "SelectionCriterion",
    "StartRule",
    "load_cat_config",
    "load_config",
    "ConfigurationError",
    "EstimationNonConvergence",
    "InputError",
    "Item",
    "ItemBank",
    "load_item_bank",
    "load_item_bank_csv",
    "category_probabilities",
    "item_information",
    "sample_response",
    "AbilityEstimate",
    "AbilityEstimator",
    "select_next_item",
    "select_start_item",
    "SessionStatus",
    "evaluate_stopping_rule",
    "AdministeredItem",
    "CATSession",
    "SessionResult",
    "summarize_session",
    "ValidationReport",
    "run_validation",
]
