"""
Shared pytest setup: test mode on, quiet structured logging.
"""
from brokerbook.config import set_test_mode
from brokerbook.logging_config import configure_logging

set_test_mode(True)
configure_logging(log_level="WARNING")
