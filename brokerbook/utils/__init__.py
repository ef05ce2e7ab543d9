"""
Utility functions for brokerbook.

This package contains:
- decimal_utils: Locale-aware numeric coercion of statement cells
- datetime_utils: Statement timestamp parsing and zone handling
- currency_utils: Currency notation normalization (ISO 4217)
- security_code_utils: Derivative/security code canonicalization
- text_utils: Cell text normalization for header and marker matching
"""
