"""
Security registrar: resolves textual instrument identifiers to stable ids.

The registrar is the one piece of state shared by statements parsed in
parallel, so implementations must make declarations thread-safe and
idempotent: declaring the same code twice, from any thread, returns the
same id.

Persistent implementations (database backed) live outside this package;
InMemorySecurityRegistrar covers CLI runs and tests.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import structlog

from brokerbook.schemas.records import SecurityType
from brokerbook.utils.security_code_utils import canonical_derivative_code, canonical_security_code

logger = structlog.get_logger(__name__)


class SecurityRegistrar(ABC):
    """Handle declaring securities and returning their numeric ids."""

    @abstractmethod
    def declare_security(
        self,
        code: str,
        security_type: SecurityType = SecurityType.STOCK_OR_BOND,
        name: Optional[str] = None
        ) -> int:
        """
        Declare a stock/bond by ticker or ISIN.

        Returns:
            Stable id of the security (same code -> same id)
        """
        pass

    @abstractmethod
    def declare_derivative(self, code: str) -> int:
        """
        Declare a derivative contract ("SiM1" or "Si-6.21").

        Both MOEX notations of one contract resolve to the same id.
        """
        pass

    @abstractmethod
    def declare_currency_pair(self, base_currency: str, quote_currency: str) -> int:
        """Declare a currency pair instrument ("USDRUB")."""
        pass


class InMemorySecurityRegistrar(SecurityRegistrar):
    """
    Process-local registrar with sequential ids starting at 1.

    Keys are (type group, canonical code); a ticker and a derivative code
    spelled the same stay distinct securities.
    """

    def __init__(self, first_id: int = 1):
        if first_id < 1:
            raise ValueError("first_id must be positive")
        self._lock = threading.Lock()
        self._next_id = first_id
        self._ids: Dict[Tuple[str, str], int] = {}
        self._securities: Dict[int, Tuple[SecurityType, str, Optional[str]]] = {}

    def _declare(self, group: str, code: str, security_type: SecurityType, name: Optional[str]) -> int:
        if not code:
            raise ValueError("Security code must not be empty")
        key = (group, code)
        with self._lock:
            security_id = self._ids.get(key)
            if security_id is None:
                security_id = self._next_id
                self._next_id += 1
                self._ids[key] = security_id
                self._securities[security_id] = (security_type, code, name)
                logger.debug("Security declared", code=code, security_type=security_type.value, id=security_id)
            return security_id

    def declare_security(
        self,
        code: str,
        security_type: SecurityType = SecurityType.STOCK_OR_BOND,
        name: Optional[str] = None
        ) -> int:
        return self._declare("security", canonical_security_code(code), security_type, name)

    def declare_derivative(self, code: str) -> int:
        return self._declare("derivative", canonical_derivative_code(code), SecurityType.DERIVATIVE, None)

    def declare_currency_pair(self, base_currency: str, quote_currency: str) -> int:
        pair = canonical_security_code(base_currency) + canonical_security_code(quote_currency)
        if len(pair) != 6:
            raise ValueError(f"Invalid currency pair: {base_currency!r}/{quote_currency!r}")
        return self._declare("currency_pair", pair, SecurityType.CURRENCY_PAIR, None)

    def get_code(self, security_id: int) -> Optional[str]:
        """Canonical code of a declared security."""
        entry = self._securities.get(security_id)
        return entry[1] if entry else None

    def get_type(self, security_id: int) -> Optional[SecurityType]:
        entry = self._securities.get(security_id)
        return entry[0] if entry else None

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        # An empty registrar is still a registrar
        return True
