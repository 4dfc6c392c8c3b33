"""
payroll_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a validated, frozen
    ``PayrollEngineConfig``.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_services``.  The kernel MUST NEVER import from
    ``payroll_config``; PayrollCycleEngine passes the individual values
    into kernel services and engines.

Invariants enforced:
    - Resolution order: explicit ``path``, then ``$PAYROLL_ENGINE_CONFIG``,
      then the built-in defaults.
    - Invalid values fail loudly with ``ValueError``.

Failure modes:
    - ``FileNotFoundError`` -- the named file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- unknown keys, wrong types or failed validation.

Audit relevance:
    Every successful call emits a ``PAYROLL_CONFIG_TRACE`` log entry with
    the source and checksum, tying calculations to the configuration that
    governed them.
"""

from __future__ import annotations

import os
from pathlib import Path

from payroll_config.loader import load_yaml_file, parse_engine_config
from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "PAYROLL_ENGINE_CONFIG"


def get_active_config(path: str | Path | None = None) -> PayrollEngineConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        path: YAML file to load.  Defaults to ``$PAYROLL_ENGINE_CONFIG``,
            and to built-in defaults when neither is set.

    Raises:
        FileNotFoundError: If the configured file does not exist.
        ValueError: If the configuration is invalid.
    """
    source = path or os.environ.get(CONFIG_ENV_VAR)
    if source:
        config = parse_engine_config(load_yaml_file(Path(source)))
    else:
        config = PayrollEngineConfig()

    errors = config.validate()
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_source": str(source) if source else "defaults",
            "checksum": config.checksum,
            "bonus_month_offset": config.bonus_month_offset,
            "payment_month_offset": config.payment_month_offset,
        },
    )
    return config


__all__ = ["CONFIG_ENV_VAR", "PayrollEngineConfig", "get_active_config"]
