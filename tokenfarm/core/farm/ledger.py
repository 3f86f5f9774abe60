"""Staking ledger: per-identity records, the permanent roster and `total_staked`.

No reward math happens here. Every function returns a new `FarmState`; the
records mapping is copied on write so earlier states stay valid.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator, Mapping

from .types import EMPTY_RECORD, FarmState, Identity, ParticipantRecord


def get_record(state: FarmState, identity: Identity) -> ParticipantRecord:
    """Record for `identity`; the never-staked record when unknown."""
    return state.records.get(identity, EMPTY_RECORD)


def put_records(state: FarmState, updates: Mapping[Identity, ParticipantRecord]) -> FarmState:
    if not updates:
        return state
    records = dict(state.records)
    records.update(updates)
    return replace(state, records=records)


def put_record(state: FarmState, identity: Identity, record: ParticipantRecord) -> FarmState:
    return put_records(state, {identity: record})


def enroll(state: FarmState, identity: Identity) -> FarmState:
    """Append `identity` to the roster the first time it stakes. Idempotent."""
    record = get_record(state, identity)
    if record.has_staked:
        return state
    state = put_record(state, identity, replace(record, has_staked=True))
    return replace(state, roster=state.roster + (identity,))


def add_stake(state: FarmState, identity: Identity, amount: int) -> FarmState:
    if amount <= 0:
        raise ValueError(f"stake increment must be positive: {amount}")
    record = get_record(state, identity)
    if not record.has_staked:
        raise ValueError(f"{identity!r} must be enrolled before staking")
    state = put_record(
        state,
        identity,
        replace(record, staked_amount=record.staked_amount + amount, is_staking=True),
    )
    return replace(state, total_staked=state.total_staked + amount)


def sub_stake(state: FarmState, identity: Identity, amount: int) -> FarmState:
    record = get_record(state, identity)
    if amount < 0 or amount > record.staked_amount:
        raise ValueError(f"cannot remove {amount} from stake {record.staked_amount}")
    remaining = record.staked_amount - amount
    state = put_record(
        state,
        identity,
        replace(record, staked_amount=remaining, is_staking=remaining > 0),
    )
    return replace(state, total_staked=state.total_staked - amount)


def iter_staking(state: FarmState) -> Iterator[tuple[Identity, ParticipantRecord]]:
    """Currently staking records, in roster (first-stake) order."""
    for identity in state.roster:
        record = get_record(state, identity)
        if record.is_staking:
            yield identity, record
