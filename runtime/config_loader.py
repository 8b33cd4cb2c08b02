# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Config loader with YAML and python-module overrides."""
from __future__ import annotations

import dataclasses
import importlib.util
import sys
from pathlib import Path
from typing import Optional

import yaml

from .common import InvalidArgument
from .config import PipelineConfig, default_config


def load_config(path: Optional[str] = None) -> PipelineConfig:
    """Load a PipelineConfig from a YAML or python file, or return the defaults.

    YAML files are merged key-by-key into the defaults. Python files are
    imported as modules and must expose ``get_config() -> PipelineConfig`` or
    ``CONFIG: PipelineConfig``.
    """
    if not path:
        return default_config()

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config path not found: {cfg_path}")

    if cfg_path.suffix.lower() in {".yaml", ".yml"}:
        with cfg_path.open(encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise InvalidArgument(f"Malformed YAML config {cfg_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise InvalidArgument(f"Config root must be a mapping, got {type(data).__name__}")
        return _config_from_mapping(data)

    spec = importlib.util.spec_from_file_location("_segmask_config_override", cfg_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to import config from {cfg_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)  # type: ignore[arg-type]

    getter = getattr(module, "get_config", None)
    if callable(getter):
        cfg = getter()
        if not isinstance(cfg, PipelineConfig):
            raise TypeError("get_config() must return runtime.config.PipelineConfig")
        return cfg

    if hasattr(module, "CONFIG") and isinstance(module.CONFIG, PipelineConfig):
        return module.CONFIG

    raise AttributeError(
        "Config file must define get_config() -> PipelineConfig or CONFIG: PipelineConfig"
    )


def _config_from_mapping(mapping: dict) -> PipelineConfig:
    cfg = default_config()
    return _update_dataclass(cfg, mapping)


def _update_dataclass(obj, mapping: dict, prefix: str = ""):
    fields = {f.name: f for f in dataclasses.fields(obj)}
    known = set(fields)
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise InvalidArgument(f"Unknown config key(s): {', '.join(prefix + k for k in unknown)}")
    for name, value in mapping.items():
        current = getattr(obj, name)
        if dataclasses.is_dataclass(current):
            if not isinstance(value, dict):
                raise InvalidArgument(f"Config section '{prefix}{name}' must be a mapping")
            _update_dataclass(current, value, prefix=f"{prefix}{name}.")
        else:
            setattr(obj, name, _coerce_value(prefix + name, current, value, str(fields[name].type)))
    return obj


def _coerce_value(key: str, current, value, annotation: str):
    """Check a scalar override against the type of the field it replaces."""
    if value is None:
        if annotation.startswith("Optional"):
            return None
        raise InvalidArgument(f"Config key '{key}' may not be null")
    if isinstance(current, tuple):
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, int) and not isinstance(v, bool) for v in value
        ):
            raise InvalidArgument(f"Config key '{key}' must be a list of integers, got {value!r}")
        return tuple(value)
    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise InvalidArgument(f"Config key '{key}' must be true or false, got {value!r}")
        return value
    if isinstance(current, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgument(f"Config key '{key}' must be an integer, got {value!r}")
        return value
    if isinstance(current, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidArgument(f"Config key '{key}' must be a number, got {value!r}")
        return float(value)
    if not isinstance(value, str):
        raise InvalidArgument(f"Config key '{key}' must be a string, got {value!r}")
    return value


__all__ = ["load_config"]
