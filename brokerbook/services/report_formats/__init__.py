"""
Statement format plugins.

Every module in this folder is imported by FormatRegistry.auto_discover()
and registers its ReportFormat subclass with @register_provider(FormatRegistry).
"""
