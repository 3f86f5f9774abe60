"""
Asset state for the staking farm
"""

from .assets import AssetError, AssetLedger, FungibleAsset, MintUnauthorized

__all__ = [
    "AssetError",
    "AssetLedger",
    "FungibleAsset",
    "MintUnauthorized",
]
