"""
Simulation utilities for validating the adaptive questionnaire.

-run_validation: Monte Carlo recovery study
-simulate_examinee: single simulated examinee
"""

from .common import load_simulation_config, load_results_config
from .validation import (
    ValidationReport,
    ValidationRun,
    format_report,
    run_validation,
    run_validation_from_config,
    simulate_examinee,
)

__all__ = [
    "load_simulation_config",
    "load_results_config",
    "ValidationReport",
    "ValidationRun",
    "format_report",
    "run_validation",
    "run_validation_from_config",
    "simulate_examinee",
]
