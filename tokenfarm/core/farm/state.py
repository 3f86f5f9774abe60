"""State construction and serialization for the farm ledger.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Mapping

from .config import config_from_mapping, config_to_dict
from .types import FarmConfig, FarmState, Identity, ParticipantRecord, Policy

RECORD_FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in fields(ParticipantRecord))

_SCALAR_FIELDS: tuple[str, ...] = (
    "total_staked",
    "accumulated_fees",
    "fees_withdrawn",
    "total_rewards_accrued",
    "burned_penalties",
    "now_step",
)


def initial_state(owner: Identity, config: FarmConfig | None = None, *, policy: Policy | None = None) -> FarmState:
    """Empty ledger owned by `owner`.

    With no `config`, the defaults of `policy` (extended when omitted) apply.
    """
    if not isinstance(owner, str) or not owner:
        raise ValueError("owner must be a non-empty identity")
    if config is None:
        config = FarmConfig.for_policy(policy or Policy.EXTENDED)
    return FarmState(owner=owner, config=config)


def _record_to_dict(r: ParticipantRecord) -> dict[str, bool | int]:
    return {name: getattr(r, name) for name in RECORD_FIELD_NAMES}


def _record_from_dict(d: Mapping[str, Any]) -> ParticipantRecord:
    kwargs: dict[str, Any] = {}
    for name in RECORD_FIELD_NAMES:
        val = d[name]
        if not isinstance(val, (bool, int)):
            raise TypeError(f"record field {name!r} must be bool|int, got {type(val).__name__}")
        kwargs[name] = val
    return ParticipantRecord(**kwargs)


def state_to_dict(state: FarmState) -> dict[str, Any]:
    """Serialize to plain JSON/YAML-compatible values. Records follow roster order."""
    out: dict[str, Any] = {
        "owner": state.owner,
        "config": config_to_dict(state.config),
        "roster": list(state.roster),
        "records": {i: _record_to_dict(state.records[i]) for i in state.roster if i in state.records},
    }
    for name in _SCALAR_FIELDS:
        out[name] = getattr(state, name)
    return out


def state_from_dict(d: Mapping[str, Any]) -> FarmState:
    """Deserialize a dict produced by `state_to_dict`. Raises KeyError on missing fields."""
    records = {str(i): _record_from_dict(r) for i, r in d["records"].items()}
    scalars: dict[str, int] = {}
    for name in _SCALAR_FIELDS:
        val = d[name]
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
        scalars[name] = val
    return FarmState(
        owner=str(d["owner"]),
        config=config_from_mapping(d["config"]),
        records=records,
        roster=tuple(str(i) for i in d["roster"]),
        **scalars,
    )
