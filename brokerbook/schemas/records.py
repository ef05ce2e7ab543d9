"""
Domain record schemas.

Normalized, broker-agnostic records produced from statements. Every record is
immutable (frozen) and currency-explicit; consumers (persistence, reporting)
own them once produced.

**Sign rules** (same for every broker):
- count: + bought/received, - sold/delivered
- value: + cash received, - cash paid
- commission: always <= 0 (cash paid to broker/exchange)

**Design Notes:**
- Currency codes are normalized to ISO 4217 ("RUR" -> "RUB")
- Timestamps are timezone-aware; naive values are rejected
- Security fields hold numeric ids returned by the security registrar
"""
from __future__ import annotations

from datetime import date as date_type, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brokerbook.utils.currency_utils import normalize_currency_code


# =============================================================================
# ENUMS
# =============================================================================

class PortfolioPropertyType(str, Enum):
    """Statement-level facts about a portfolio."""
    TOTAL_ASSETS_RUB = "total_assets_rub"
    TOTAL_ASSETS_USD = "total_assets_usd"
    TOTAL_ASSETS_EUR = "total_assets_eur"


class CashFlowType(str, Enum):
    """Kind of cash movement."""
    CASH = "cash"  # deposit/withdrawal
    COMMISSION = "commission"
    TAX = "tax"
    DIVIDEND = "dividend"
    COUPON = "coupon"
    AMORTIZATION = "amortization"
    REDEMPTION = "redemption"
    DERIVATIVE_PROFIT = "derivative_profit"  # variation margin
    FEE = "fee"


class SecurityType(str, Enum):
    """Instrument class of a declared security."""
    STOCK = "stock"
    BOND = "bond"
    STOCK_OR_BOND = "stock_or_bond"
    DERIVATIVE = "derivative"
    CURRENCY_PAIR = "currency_pair"
    ASSET = "asset"


# =============================================================================
# BASE MODEL
# =============================================================================

class RecordModel(BaseModel):
    """Base of all domain records: immutable, strict fields, shared validators."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("currency", "value_currency", "commission_currency", mode="before", check_fields=False)
    @classmethod
    def _validate_currency(cls, v: Any) -> Any:
        if v is None:
            return v
        return normalize_currency_code(v)

    @field_validator("timestamp", mode="after", check_fields=False)
    @classmethod
    def _validate_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return v


# =============================================================================
# PORTFOLIO RECORDS
# =============================================================================

class PortfolioProperty(RecordModel):
    """Statement-level property of a portfolio (e.g. total assets valuation)."""
    portfolio: str = Field(..., min_length=1)
    timestamp: datetime
    property: PortfolioPropertyType
    value: str


class PortfolioCash(RecordModel):
    """Cash balance of a portfolio section in one currency."""
    portfolio: str = Field(..., min_length=1)
    timestamp: Optional[datetime] = Field(default=None, description="Balance date, if the statement prints one")
    section: str = Field(default="all", description="Sub-account section; 'all' when not subdivided")
    value: Decimal
    currency: str


class EventCashFlow(RecordModel):
    """Cash movement not bound to a security (deposit, withdrawal, tax, fee)."""
    portfolio: str = Field(..., min_length=1)
    timestamp: datetime
    event_type: CashFlowType
    value: Decimal
    currency: str
    description: Optional[str] = Field(default=None, max_length=500)


# =============================================================================
# SECURITY RECORDS
# =============================================================================

class Security(RecordModel):
    """Security declared in a statement, identified by its registrar id."""
    id: int = Field(..., gt=0, description="Registrar id")
    type: SecurityType
    isin: Optional[str] = None
    ticker: Optional[str] = None
    name: Optional[str] = None


class SecurityTransaction(RecordModel):
    """Stock/bond trade."""
    trade_id: str = Field(..., min_length=1)
    portfolio: str = Field(..., min_length=1)
    security: int = Field(..., gt=0, description="Registrar id")
    timestamp: datetime
    count: int
    value: Decimal
    accrued_interest: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    value_currency: str
    commission_currency: str

    @field_validator("count")
    @classmethod
    def _validate_count(cls, v: int) -> int:
        if v == 0:
            raise ValueError("transaction count must not be zero")
        return v


class DerivativeTransaction(RecordModel):
    """Futures/options trade or contract expiration."""
    trade_id: str = Field(..., min_length=1)
    portfolio: str = Field(..., min_length=1)
    security: int = Field(..., gt=0, description="Registrar id")
    timestamp: datetime
    count: int
    value_in_points: Decimal
    value: Decimal
    commission: Decimal = Decimal("0")
    value_currency: str
    commission_currency: str

    @field_validator("count")
    @classmethod
    def _validate_count(cls, v: int) -> int:
        if v == 0:
            raise ValueError("transaction count must not be zero")
        return v


# Records of the TRANSACTIONS stream
AbstractTransaction = Union[SecurityTransaction, DerivativeTransaction]


class SecurityEventCashFlow(RecordModel):
    """Cash movement bound to a security (dividend, coupon, amortization)."""
    portfolio: str = Field(..., min_length=1)
    timestamp: datetime
    security: int = Field(..., gt=0)
    count: int = Field(..., ge=0)
    event_type: CashFlowType
    value: Decimal
    currency: str


class SecurityQuote(RecordModel):
    """Quote of a security stored by the statement."""
    security: int = Field(..., gt=0)
    timestamp: datetime
    quote: Decimal
    price: Optional[Decimal] = None
    accrued_interest: Optional[Decimal] = None
    currency: Optional[str] = None


class ForeignExchangeRate(RecordModel):
    """Official exchange rate printed by the statement."""
    date: date_type
    currency_pair: str = Field(..., pattern=r"^[A-Z]{6}$", description="e.g. 'USDRUB'")
    rate: Decimal = Field(..., gt=0)
