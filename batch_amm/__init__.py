"""
batch_amm: a concentrated constant-product AMM for batch settlement.
"""

__version__ = "0.1.0"
