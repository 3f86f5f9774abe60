"""
In-memory fungible asset ledger (stake asset / reward asset collaborator).

Implements the interface the farm service needs from an asset:
balance_of / transfer / transfer_from / mint, plus allowances and a single,
transferable mint authority.
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, runtime_checkable


Account = str
Amount = int  # Non-negative integer (arbitrary precision)


class AssetError(Exception):
    """Base error for asset ledger operations."""


class MintUnauthorized(AssetError):
    pass


@runtime_checkable
class FungibleAsset(Protocol):
    """What the farm service requires from an asset collaborator."""

    def balance_of(self, account: Account) -> Amount: ...

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool: ...

    def transfer_from(self, spender: Account, owner: Account, to: Account, amount: Amount) -> bool: ...

    def mint(self, minter: Account, to: Account, amount: Amount) -> None: ...


def _check_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"Amount must be a non-negative int: {amount!r}")


class AssetLedger:
    """
    Balance and allowance table for a single fungible asset.

    `transfer` / `transfer_from` report failure by returning False and leave
    balances untouched; `mint` raises `MintUnauthorized` for anyone but the
    current authority.
    """

    def __init__(self, name: str, symbol: str, authority: Account):
        self.name = name
        self.symbol = symbol
        self.authority = authority
        self.total_supply: Amount = 0
        self._balances: Dict[Account, Amount] = {}
        self._allowances: Dict[Tuple[Account, Account], Amount] = {}

    def balance_of(self, account: Account) -> Amount:
        """Balance for `account`. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def allowance(self, owner: Account, spender: Account) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def _set_balance(self, account: Account, amount: Amount) -> None:
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def approve(self, owner: Account, spender: Account, amount: Amount) -> None:
        """Allow `spender` to move up to `amount` of `owner`'s balance (replaces any prior allowance)."""
        _check_amount(amount)
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        """
        Move `amount` from `sender` to `to`.

        Returns:
            False (and changes nothing) if `sender` has insufficient balance
        """
        _check_amount(amount)
        current = self.balance_of(sender)
        if current < amount:
            return False
        self._set_balance(sender, current - amount)
        self._set_balance(to, self.balance_of(to) + amount)
        return True

    def transfer_from(self, spender: Account, owner: Account, to: Account, amount: Amount) -> bool:
        """
        Move `amount` from `owner` to `to` on behalf of `spender`, consuming allowance.

        Returns:
            False (and changes nothing) on insufficient allowance or balance
        """
        _check_amount(amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            return False
        if not self.transfer(owner, to, amount):
            return False
        self.approve(owner, spender, allowed - amount)
        return True

    def mint(self, minter: Account, to: Account, amount: Amount) -> None:
        """
        Create `amount` new units for `to`.

        Raises:
            MintUnauthorized: If `minter` is not the current authority
        """
        _check_amount(amount)
        if minter != self.authority:
            raise MintUnauthorized(f"{minter!r} is not the mint authority of {self.symbol}")
        self._set_balance(to, self.balance_of(to) + amount)
        self.total_supply += amount

    def transfer_authority(self, caller: Account, new_authority: Account) -> None:
        if caller != self.authority:
            raise MintUnauthorized(f"{caller!r} is not the mint authority of {self.symbol}")
        if not new_authority:
            raise ValueError("new authority must be non-empty")
        self.authority = new_authority

    def get_all_balances(self) -> Dict[Account, Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"AssetLedger({self.symbol}, {len(self._balances)} holders, supply={self.total_supply})"
