"""
brokerbook - broker statement table extraction engine.

Reads brokerage account statements (spreadsheets) and extracts normalized
domain records: cash positions, security and derivative transactions,
cash flows, quotes and currency rates.
"""
__version__ = "0.1.0"
