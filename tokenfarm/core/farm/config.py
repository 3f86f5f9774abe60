"""Farm configuration loading.

Configuration is a flat mapping of `FarmConfig` field names, usually kept in a
YAML file::

    policy: extended
    reward_per_step: 1000000000000000000
    withdrawal_fee_bps: 300
    lock_period_steps: 100

Missing keys take the policy's defaults. Unknown keys are rejected. Value
validation is done by `FarmConfig` itself.
"""

from __future__ import annotations

from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import FarmConfig, Policy

CONFIG_KEYS: tuple[str, ...] = tuple(f.name for f in fields(FarmConfig))


def config_from_mapping(obj: Mapping[str, Any]) -> FarmConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("farm config must be a mapping")
    unknown = sorted(set(obj) - set(CONFIG_KEYS))
    if unknown:
        raise ValueError(f"unknown farm config keys: {', '.join(map(str, unknown))}")

    policy = Policy(obj.get("policy", Policy.EXTENDED.value))
    overrides = {k: v for k, v in obj.items() if k != "policy"}
    return replace(FarmConfig.for_policy(policy), **overrides)


def config_to_dict(config: FarmConfig) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(config, name) for name in CONFIG_KEYS}
    out["policy"] = config.policy.value
    return out


def load_farm_config(path: Path | str) -> FarmConfig:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        obj = {}
    return config_from_mapping(obj)
