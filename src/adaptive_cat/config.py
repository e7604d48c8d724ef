import yaml
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from adaptive_cat.errors import ConfigurationError


def load_config(config_path: str = "configs/config.yaml") -> Dict[str, Any]:
    """
    Read a YAML configuration file.

    Parameters:
    ----------
    config_path: str
        path to the configuration file (default: "configs/config.yaml")

    Returns:
    -------
    cfg: Dict[str, Any]
        configuration as a dictionary
    """
    with open(config_path, 'r', encoding='utf-8') as f:
        cfg = yaml.safe_load(f)
    return cfg or {}


class StartRule(str, Enum):
    """How the first item of a session is chosen."""
    RANDOM = "random"


class SelectionCriterion(str, Enum):
    """How every later item is chosen."""
    MAX_INFORMATION = "max_information"


class EstimationMethod(str, Enum):
    """Bayesian point estimator for theta."""
    EAP = "EAP"
    MAP = "MAP"


# aliases accepted in config files (mirtCAT spells maximum information "MI")
_CRITERION_ALIASES = {"mi": SelectionCriterion.MAX_INFORMATION}


@dataclass(frozen=True)
class ExposureControl:
    """Randomesque exposure control: draw among the top_k most informative items."""
    enabled: bool = True
    top_k: int = 3


@dataclass(frozen=True)
class CATConfig:
    """Design of one adaptive administration."""
    start_rule: StartRule = StartRule.RANDOM
    selection_criterion: SelectionCriterion = SelectionCriterion.MAX_INFORMATION
    estimation_method: EstimationMethod = EstimationMethod.EAP
    min_items: int = 8
    max_items: int = 15
    min_sem: float = 0.30
    exposure_control: ExposureControl = field(default_factory=ExposureControl)

    def __post_init__(self) -> None:
        validate_cat_config(self)


def validate_cat_config(c: CATConfig) -> None:
    if not isinstance(c.start_rule, StartRule):
        raise ConfigurationError(f"unsupported start_rule: {c.start_rule}")
    if not isinstance(c.selection_criterion, SelectionCriterion):
        raise ConfigurationError(f"unsupported selection_criterion: {c.selection_criterion}")
    if not isinstance(c.estimation_method, EstimationMethod):
        raise ConfigurationError(f"unsupported estimation_method: {c.estimation_method}")
    if c.min_items < 1:
        raise ConfigurationError(f"min_items must be >= 1: {c.min_items}")
    if c.max_items < c.min_items:
        raise ConfigurationError(
            f"max_items must be >= min_items: min_items={c.min_items}, max_items={c.max_items}"
        )
    if not c.min_sem > 0:
        raise ConfigurationError(f"min_sem must be > 0: {c.min_sem}")
    if c.exposure_control.top_k < 1:
        raise ConfigurationError(f"exposure_control.top_k must be >= 1: {c.exposure_control.top_k}")


def _parse_enum(enum_cls, value: Any, key: str, aliases: Dict[str, Any] = None):
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    if aliases and text.lower() in aliases:
        return aliases[text.lower()]
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    allowed = [m.value for m in enum_cls]
    raise ConfigurationError(f"cat.{key} must be one of {allowed}: {value!r}")


_REQUIRED_KEYS = (
    "start_rule",
    "selection_criterion",
    "estimation_method",
    "min_items",
    "max_items",
    "min_sem",
    "exposure_control",
)


def load_cat_config(cfg: Dict[str, Any]) -> CATConfig:
    """
    Build a CATConfig from the "cat" section of a configuration dictionary.
    Every design key is required.

    Raises:
    -------
    ConfigurationError
        if a key is missing or a value is out of range
    """
    cat = cfg.get("cat", cfg) or {}
    missing = [k for k in _REQUIRED_KEYS if k not in cat]
    if missing:
        raise ConfigurationError(f"Missing keys in cat config: {missing}")

    exposure = cat["exposure_control"] or {}
    if not isinstance(exposure, dict):
        raise ConfigurationError("cat.exposure_control must be a mapping.")
    enabled = exposure.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigurationError("cat.exposure_control.enabled must be a boolean.")

    try:
        return CATConfig(
            start_rule=_parse_enum(StartRule, cat["start_rule"], "start_rule"),
            selection_criterion=_parse_enum(
                SelectionCriterion, cat["selection_criterion"], "selection_criterion", _CRITERION_ALIASES
            ),
            estimation_method=_parse_enum(EstimationMethod, cat["estimation_method"], "estimation_method"),
            min_items=int(cat["min_items"]),
            max_items=int(cat["max_items"]),
            min_sem=float(cat["min_sem"]),
            exposure_control=ExposureControl(enabled=enabled, top_k=int(exposure.get("top_k", 1))),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"invalid cat config: {e}") from e
