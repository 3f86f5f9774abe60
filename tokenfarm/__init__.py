"""
Proportional staking-reward ledger.
"""
