"""Job configuration and benchmark profile loading.

Handles:
- The ``JobConfig`` dataclass with the documented defaults.
- Validating a configuration before any timing loop runs.
- Loading benchmark profiles (settings plus code entries) from YAML.
- Parsing inline ``label=code`` entry definitions from the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger("ipsbench")

OUTPUT_FORMATS = ("human", "raw")


class ConfigurationError(ValueError):
    """A job cannot run as configured.  Raised before any measurement."""


# ---------------------------------------------------------------------------
# JobConfig
# ---------------------------------------------------------------------------


@dataclass
class JobConfig:
    """Resolved configuration for a benchmark job."""

    warmup: float = 2.0  # Calibration seconds; 0 skips calibration
    time: float = 5.0  # Measurement seconds per entry per pass
    iterations: int = 1  # Full calibrate+measure passes
    stats: str = "sd"  # "sd" or "bootstrap"
    confidence: float = 95  # Percent, bootstrap only
    quiet: bool = False
    compare: bool = False
    hold_path: Path | None = None
    json_path: Path | None = None
    share: bool = False
    batch_time: float = 0.1  # Target seconds per calibrated batch
    format: str = "human"

    # Code entries from a profile or the CLI: label -> source.
    entries: dict[str, str] = field(default_factory=dict)
    setup: str = ""

    def __post_init__(self) -> None:
        if self.hold_path is not None and not isinstance(self.hold_path, Path):
            self.hold_path = Path(self.hold_path)
        if self.json_path is not None and not isinstance(self.json_path, Path):
            self.json_path = Path(self.json_path)

    @property
    def batch_us(self) -> float:
        """Calibration target per batch in microseconds."""
        return self.batch_time * 1_000_000

    def to_dict(self) -> dict[str, Any]:
        """Serialize the settings (not the entries) to a JSON-compatible dict."""
        return {
            "warmup": self.warmup,
            "time": self.time,
            "iterations": self.iterations,
            "stats": self.stats,
            "confidence": self.confidence,
            "quiet": self.quiet,
            "compare": self.compare,
            "hold_path": str(self.hold_path) if self.hold_path else None,
            "json_path": str(self.json_path) if self.json_path else None,
            "share": self.share,
            "batch_time": self.batch_time,
            "format": self.format,
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: JobConfig) -> list[ValidationError]:
    """Validate a job configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    from ipsbench.stats import StatsMode, parse_stats_mode, require_numpy

    errors: list[ValidationError] = []

    if config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup time cannot be negative (got {config.warmup}).",
            )
        )

    if config.time <= 0:
        errors.append(
            ValidationError(
                field="time",
                message=f"Measurement time must be positive (got {config.time}).",
            )
        )

    if config.iterations < 1:
        errors.append(
            ValidationError(
                field="iterations",
                message=f"Need at least 1 pass (got {config.iterations}).",
            )
        )

    if config.batch_time <= 0:
        errors.append(
            ValidationError(
                field="batch_time",
                message=f"Batch time must be positive (got {config.batch_time}).",
            )
        )
    elif config.batch_time >= config.time > 0:
        errors.append(
            ValidationError(
                field="batch_time",
                message=(
                    f"Batch time ({config.batch_time}s) is not shorter than the "
                    f"measurement time ({config.time}s); expect a single sample."
                ),
                severity="warning",
            )
        )

    if config.format not in OUTPUT_FORMATS:
        errors.append(
            ValidationError(
                field="format",
                message=(
                    f"Unknown format '{config.format}'. "
                    f"Valid formats: {', '.join(OUTPUT_FORMATS)}"
                ),
            )
        )

    try:
        mode = parse_stats_mode(config.stats)
    except ConfigurationError as exc:
        errors.append(ValidationError(field="stats", message=str(exc)))
    else:
        if mode is StatsMode.BOOTSTRAP:
            if not 0 < config.confidence < 100:
                errors.append(
                    ValidationError(
                        field="confidence",
                        message=(
                            f"Confidence must be a percentage between 0 and 100 "
                            f"(got {config.confidence})."
                        ),
                    )
                )
            try:
                require_numpy()
            except ConfigurationError as exc:
                errors.append(ValidationError(field="stats", message=str(exc)))

    for label in config.entries:
        if not label or not label.strip():
            errors.append(
                ValidationError(field="entries", message="Entry labels must be non-empty.")
            )

    return errors


def raise_for_errors(errors: list[ValidationError]) -> None:
    """Log warnings and raise ConfigurationError if any error is fatal."""
    fatal = [e for e in errors if e.severity == "error"]
    for w in errors:
        if w.severity == "warning":
            log.warning("Config warning: %s: %s", w.field, w.message)
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigurationError("Invalid benchmark configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------

_PROFILE_KEYS = {
    "warmup",
    "time",
    "iterations",
    "stats",
    "confidence",
    "quiet",
    "compare",
    "hold_path",
    "json_path",
    "share",
    "batch_time",
    "format",
    "setup",
    "entries",
}


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        warmup: 1
        time: 3
        stats: bootstrap
        compare: true
        setup: |
          data = list(range(100))
        entries:
          sum: "sum(data)"
          loop: |
            total = 0
            for x in data:
                total += x

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> JobConfig:
    """Build a JobConfig from a parsed YAML profile.

    CLI overrides that are not None take precedence over profile values.
    Keys match JobConfig field names.
    """
    unknown = set(profile_data) - _PROFILE_KEYS
    if unknown:
        raise ValueError(f"Unknown profile key(s): {', '.join(sorted(unknown))}")

    merged: dict[str, Any] = dict(profile_data)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    entries_data = merged.pop("entries", {}) or {}
    if not isinstance(entries_data, dict):
        raise ValueError("Profile 'entries' must be a mapping of label -> code")

    config = JobConfig()
    for key in ("warmup", "time", "batch_time", "confidence"):
        if key in merged:
            setattr(config, key, float(merged[key]))
    if "iterations" in merged:
        config.iterations = int(merged["iterations"])
    for key in ("stats", "format", "setup"):
        if key in merged:
            setattr(config, key, str(merged[key]))
    for key in ("quiet", "compare", "share"):
        if key in merged:
            setattr(config, key, bool(merged[key]))
    for key in ("hold_path", "json_path"):
        if merged.get(key):
            setattr(config, key, Path(merged[key]))

    for label, code in entries_data.items():
        if not isinstance(code, str):
            raise ValueError(
                f"Entry '{label}' must be a code string, got {type(code).__name__}"
            )
        config.entries[str(label)] = code

    return config


# ---------------------------------------------------------------------------
# Inline entry parsing
# ---------------------------------------------------------------------------


def parse_inline_entry(spec: str) -> tuple[str, str]:
    """Parse an inline entry specification from the CLI.

    Format: ``"label=code"``.  Everything after the first ``=`` is code,
    so ``"eq=a == b"`` defines the entry ``eq`` running ``a == b``.

    Returns:
        Tuple of (label, code).
    """
    if "=" not in spec:
        raise ValueError(f"Invalid entry spec: '{spec}'. Expected format: 'label=code'")
    label, code = spec.split("=", 1)
    label = label.strip()
    if not label:
        raise ValueError("Entry label cannot be empty.")
    if not code.strip():
        raise ValueError(f"Entry '{label}' has no code.")
    return label, code
