# -*- coding: utf-8 -*-

"""
Error types raised by the adaptive testing engine.

Copyright (c) 2026 Yuta Wakui
Licensed under the MIT License.
"""

# File: src/adaptive_cat/errors.py
# Author: Yuta Wakui
# Date: 2026-10-19
# Description: Error types for item bank loading, configuration and responses


class ConfigurationError(ValueError):
    """Malformed item parameters or an invalid CAT design. Fatal at construction."""


class InputError(ValueError):
    """A rejected response. The session state is left unchanged and the caller may resubmit."""


class EstimationNonConvergence(RuntimeError):
    """MAP iteration did not converge within its iteration budget."""

    def __init__(self, message: str, iterations: int):
        super().__init__(message)
        self.iterations = iterations
