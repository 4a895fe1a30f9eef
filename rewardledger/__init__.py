"""
rewardledger: stake-weighted reward distribution with delayed unbonding.
"""

__version__ = "0.1.0"
