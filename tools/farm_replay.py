#!/usr/bin/env python3
"""
Replay a staking scenario through the farm service and print its audit log.

Scenario format (YAML):

  owner: owner
  config:                    # optional, FarmConfig fields
    policy: extended
    withdrawal_fee_bps: 500
  stake_balances:            # optional, minted on the stake asset before replay
    alice: 1000
  approvals:                 # optional, stake-asset allowances granted to the farm
    alice: 1000
  calls:
    - {action: deposit, caller: alice, step: 10, amount: 100}
    - {action: distribute_rewards_all, caller: owner, step: 12}

Each call runs in order. Rejected calls are reported with their error code and
the replay continues unless --stop-on-error is given.

Example:
  python3 tools/farm_replay.py scenario.yaml --state
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping

import yaml

from tokenfarm.core.farm import Action, CallParams, FarmError, config_from_mapping, state_to_dict
from tokenfarm.integration.farm_service import DEFAULT_FARM_ACCOUNT, FarmService
from tokenfarm.state.assets import AssetLedger

BOOTSTRAP_AUTHORITY = "bootstrap"

_CALL_KEYS = ("amount", "value", "lower", "upper", "new_owner")


class ScenarioError(Exception):
    pass


def load_scenario(path: Path) -> dict[str, Any]:
    obj = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ScenarioError(f"{path}: scenario must be a mapping")
    if not isinstance(obj.get("owner"), str) or not obj["owner"]:
        raise ScenarioError(f"{path}: 'owner' must be a non-empty string")
    if not isinstance(obj.get("calls", []), list):
        raise ScenarioError(f"{path}: 'calls' must be a list")
    return obj


def _call_params(raw: Mapping[str, Any]) -> CallParams:
    try:
        action = Action(raw["action"])
        caller = raw["caller"]
        step = raw["step"]
    except (KeyError, ValueError) as exc:
        raise ScenarioError(f"bad call {dict(raw)!r}: {exc}") from exc
    extra = {k: raw[k] for k in _CALL_KEYS if k in raw}
    return CallParams(action=action, caller=caller, step=step, **extra)


def build_service(scenario: Mapping[str, Any]) -> FarmService:
    stake = AssetLedger("LP Token", "LPT", authority=BOOTSTRAP_AUTHORITY)
    reward = AssetLedger("DApp Token", "DAPP", authority=BOOTSTRAP_AUTHORITY)
    # Only the farm account may mint rewards.
    reward.transfer_authority(BOOTSTRAP_AUTHORITY, DEFAULT_FARM_ACCOUNT)

    config = config_from_mapping(scenario["config"]) if scenario.get("config") is not None else None
    service = FarmService(stake, reward, owner=scenario["owner"], config=config)

    for account, amount in (scenario.get("stake_balances") or {}).items():
        stake.mint(BOOTSTRAP_AUTHORITY, str(account), int(amount))
    for account, amount in (scenario.get("approvals") or {}).items():
        stake.approve(str(account), service.account, int(amount))
    return service


def run_scenario(scenario: Mapping[str, Any], *, stop_on_error: bool = False) -> dict[str, Any]:
    service = build_service(scenario)
    calls: list[dict[str, Any]] = []
    for raw in scenario.get("calls") or []:
        params = _call_params(raw)
        entry: dict[str, Any] = {"action": params.action.value, "caller": params.caller, "step": params.step}
        try:
            result = service.execute(params)
        except FarmError as exc:
            entry["ok"] = False
            entry["error"] = type(exc).__name__
            entry["reason"] = str(exc)
            calls.append(entry)
            if stop_on_error:
                break
            continue
        entry["ok"] = True
        entry["effects"] = [dict(asdict(e), event=e.event.value) for e in result.effects]
        calls.append(entry)

    return {
        "calls": calls,
        "state": state_to_dict(service.state),
        "stake_balances": service.stake_asset.get_all_balances(),
        "reward_balances": service.reward_asset.get_all_balances(),
    }


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay a staking scenario and print the audit log as JSON.")
    p.add_argument("scenario", type=Path, help="Path to scenario YAML")
    p.add_argument("--stop-on-error", action="store_true", help="Stop at the first rejected call")
    p.add_argument("--state", action="store_true", help="Include final ledger state and asset balances")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every call to stderr")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        scenario = load_scenario(args.scenario)
        report = run_scenario(scenario, stop_on_error=bool(args.stop_on_error))
    except (OSError, yaml.YAMLError, ScenarioError, TypeError, ValueError) as exc:
        print(f"farm_replay error: {exc}", file=sys.stderr)
        return 2

    if not args.state:
        report = {"calls": report["calls"]}
    print(json.dumps(report, indent=2, sort_keys=True))
    return 0 if all(c["ok"] for c in report["calls"]) else 1


if __name__ == "__main__":
    raise SystemExit(main())
