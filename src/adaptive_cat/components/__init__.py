"""
Adaptive testing engine components.

-item_bank: calibrated items and loaders
-response_model: graded response model
-estimator: EAP / MAP ability estimation
-selector: start rule and maximum-information selection
-stopping: stopping-rule state machine
-session: CAT session orchestration
-scoring: end-of-session score summaries
"""
