"""
Configuration management for beacon-registration.

Provides a typed pydantic model and YAML loader with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml


# -----------------------
# Typed config structures
# -----------------------


class RegistrationConfig(BaseModel):
    min_overlap: int = Field(default=12, ge=1, description="Beacons that must coincide exactly to accept a registration")
    sensing_range: int = Field(default=1000, ge=0, description="Half-width of the cubic sensing region per axis")
    reference_scanner: int = Field(default=0, ge=0, description="Scanner whose frame becomes the shared frame")
    # 'jit' evaluates the full candidate map with a parallel numba kernel;
    # 'process' splits it into blocks over a worker pool;
    # 'sequential' scans candidates in order and stops at the first accepted one.
    backend: Literal["jit", "process", "sequential"] = Field(default="jit")


class ParallelConfig(BaseModel):
    n_workers: Optional[int] = Field(default=None, description="Worker processes for the 'process' backend (None = cpu_count - 1)")
    memory_limit_gb: Optional[float] = Field(
        default=None,
        description="Upper bound for the candidate buffers of one scanner pair (None = unbounded)",
    )


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class AppConfig(BaseModel):
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/beacon_registration/utils/config.py
    parents sequence:
      0 -> .../src/beacon_registration/utils
      1 -> .../src/beacon_registration
      2 -> .../src
      3 -> repo_root
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when file missing; otherwise raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        # Re-raise with context to help users fix the YAML
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}")
