import os
from dataclasses import dataclass, fields, replace
from typing import Literal

from recurring_engine.core import settings
from recurring_engine.logger import get_logger

ValueType = Literal["string", "int", "float"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class DetectionSettings:
    """Tuning policy for a detection run.

    The defaults reproduce the historical behaviour exactly; change them only
    through configuration.
    """
    interval_tolerance_days: float = 5
    monthly_min_days: float = 20
    monthly_max_days: float = 40
    max_edit_distance: int = 3
    sample_size: int = 3
    min_cluster_size: int = 2
    anomaly_threshold: float = 0.20
    anomaly_high_threshold: float = 0.50
    anomaly_window: int = 5
    anomaly_min_matches: int = 2
    classifier_min_confidence: float = 0.6
    min_transactions: int = 3

    def __post_init__(self) -> None:
        if self.monthly_min_days > self.monthly_max_days:
            raise ValueError("monthly_min_days must not exceed monthly_max_days")
        if self.anomaly_threshold > self.anomaly_high_threshold:
            raise ValueError("anomaly_threshold must not exceed anomaly_high_threshold")
        if self.min_cluster_size < 2:
            raise ValueError("min_cluster_size must be at least 2")
        if self.anomaly_min_matches < 1 or self.anomaly_window < self.anomaly_min_matches:
            raise ValueError("anomaly_window must hold at least anomaly_min_matches transactions")


DEFAULT_SETTINGS = DetectionSettings()


@dataclass(frozen=True)
class ConfigField:
    key: str
    label: str
    description: str
    category: str
    value_type: ValueType = "string"
    attribute: str | None = None
    options: tuple[str, ...] | None = None
    min_value: float | int | None = None
    max_value: float | int | None = None
    restart_required: bool = False


CONFIG_FIELDS: tuple[ConfigField, ...] = (
    ConfigField(
        key="RECURRING_INTERVAL_TOLERANCE_DAYS",
        label="Interval Tolerance",
        description="Maximum distance in days between any interval and the mean interval.",
        category="Recurring",
        value_type="float",
        attribute="interval_tolerance_days",
        min_value=0,
    ),
    ConfigField(
        key="RECURRING_MONTHLY_MIN_DAYS",
        label="Monthly Band Minimum",
        description="Smallest mean interval still treated as monthly.",
        category="Recurring",
        value_type="float",
        attribute="monthly_min_days",
        min_value=1,
    ),
    ConfigField(
        key="RECURRING_MONTHLY_MAX_DAYS",
        label="Monthly Band Maximum",
        description="Largest mean interval still treated as monthly.",
        category="Recurring",
        value_type="float",
        attribute="monthly_max_days",
        min_value=1,
    ),
    ConfigField(
        key="RECURRING_SAMPLE_SIZE",
        label="Sample Size",
        description="Number of most recent transactions attached to each candidate.",
        category="Recurring",
        value_type="int",
        attribute="sample_size",
        min_value=1,
    ),
    ConfigField(
        key="CLUSTER_MAX_EDIT_DISTANCE",
        label="Edit Distance Cutoff",
        description="Descriptions join a cluster when their edit distance is below this value.",
        category="Recurring",
        value_type="int",
        attribute="max_edit_distance",
        min_value=0,
    ),
    ConfigField(
        key="ANOMALY_THRESHOLD",
        label="Anomaly Threshold",
        description="Relative deviation from the average that raises an anomaly.",
        category="Anomalies",
        value_type="float",
        attribute="anomaly_threshold",
        min_value=0.0,
    ),
    ConfigField(
        key="ANOMALY_HIGH_THRESHOLD",
        label="High Severity Threshold",
        description="Relative deviation above which an anomaly is high severity.",
        category="Anomalies",
        value_type="float",
        attribute="anomaly_high_threshold",
        min_value=0.0,
    ),
    ConfigField(
        key="ANOMALY_WINDOW",
        label="Anomaly Window",
        description="Number of most recent matching transactions compared.",
        category="Anomalies",
        value_type="int",
        attribute="anomaly_window",
        min_value=1,
    ),
    ConfigField(
        key="ANOMALY_MIN_MATCHES",
        label="Anomaly Minimum Matches",
        description="Matching transactions required before an obligation is checked.",
        category="Anomalies",
        value_type="int",
        attribute="anomaly_min_matches",
        min_value=1,
    ),
    ConfigField(
        key="CLASSIFIER_MIN_CONFIDENCE",
        label="Classifier Confidence",
        description="Classified candidates below this confidence are discarded.",
        category="Classification",
        value_type="float",
        attribute="classifier_min_confidence",
        min_value=0.0,
        max_value=1.0,
    ),
    ConfigField(
        key="MIN_TRANSACTIONS",
        label="Minimum History",
        description="Valid transactions required before recurring detection runs.",
        category="Classification",
        value_type="int",
        attribute="min_transactions",
        min_value=0,
    ),
    ConfigField(
        key="OPENAI_API_KEY",
        label="OpenAI API Key",
        description="API key for the optional LLM candidate classifier.",
        category="OpenAI",
    ),
    ConfigField(
        key="OPENAI_MODEL",
        label="OpenAI Model",
        description="Model name for the OpenAI-compatible client.",
        category="OpenAI",
    ),
    ConfigField(
        key="OPENAI_BASE_URL",
        label="OpenAI Base URL",
        description="Override OpenAI base URL for compatible providers.",
        category="OpenAI",
    ),
    ConfigField(
        key="DATA_DIR",
        label="Data Directory",
        description="Directory holding merchants.json.",
        category="Storage",
        restart_required=True,
    ),
    ConfigField(
        key="LOG_DIR",
        label="Log Directory",
        description="Directory for application logs (app.log).",
        category="Storage",
        restart_required=True,
    ),
    ConfigField(
        key="LOG_LEVEL",
        label="Log Level",
        description="Logging verbosity for the application.",
        category="Storage",
        options=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        restart_required=True,
    ),
)


def validate_value(field: ConfigField, raw_value: str) -> tuple[str | int | float, str | None]:
    value = raw_value.strip()
    if not value:
        return "", None

    if field.options:
        normalized = value.upper()
        if normalized not in field.options:
            return value, f"Must be one of: {', '.join(field.options)}."
        return normalized, None

    parsed: int | float
    if field.value_type == "int":
        try:
            parsed = int(value)
        except ValueError:
            return value, "Must be a whole number."
    elif field.value_type == "float":
        try:
            parsed = float(value)
        except ValueError:
            return value, "Must be a number."
    else:
        return value, None

    if field.min_value is not None and parsed < field.min_value:
        return value, f"Must be at least {field.min_value}."
    if field.max_value is not None and parsed > field.max_value:
        return value, f"Must be at most {field.max_value}."
    return parsed, None


def load_detection_settings() -> DetectionSettings:
    overrides: dict[str, int | float] = {}
    for field in CONFIG_FIELDS:
        if field.attribute is None:
            continue
        raw_value = os.getenv(field.key)
        if raw_value is None or not raw_value.strip():
            continue
        parsed, error = validate_value(field, raw_value)
        if error:
            logger.warning(
                "[CONFIG] Ignoring %s='%s': %s Using default %s.",
                field.key,
                raw_value,
                error,
                getattr(DEFAULT_SETTINGS, field.attribute),
            )
            continue
        overrides[field.attribute] = parsed

    try:
        return replace(DEFAULT_SETTINGS, **overrides)
    except ValueError as exc:
        logger.warning("[CONFIG] Inconsistent detection settings (%s); using defaults.", exc)
        return DEFAULT_SETTINGS


def describe_config(detection: DetectionSettings | None = None) -> dict[str, object]:
    detection = detection or load_detection_settings()
    effective = {f.name: getattr(detection, f.name) for f in fields(detection)}
    sections: dict[str, list[dict[str, object]]] = {}

    for field in CONFIG_FIELDS:
        if field.attribute is not None:
            value: object = effective[field.attribute]
        else:
            raw_value = os.getenv(field.key)
            value = None if raw_value is None else settings.mask_value(field.key, raw_value)
        sections.setdefault(field.category, []).append(
            {
                "key": field.key,
                "label": field.label,
                "description": field.description,
                "value": value,
                "env_override": settings.is_env_override(field.key),
                "restart_required": field.restart_required,
            }
        )

    return {
        "config_path": settings.get_config_path() or "Not configured",
        "sections": [{"name": name, "fields": items} for name, items in sections.items()],
    }
