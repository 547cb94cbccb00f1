from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Any


@dataclass(frozen=True)
class ExchangeRate:
    """A single resolved quote between two currencies."""
    from_currency: str
    to_currency: str
    rate: float
    timestamp: datetime
    date: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "rate": self.rate,
            "timestamp": self.timestamp.isoformat(),
            "date": self.date,
        }

    def __str__(self):
        return f"{self.from_currency} -> {self.to_currency}: {self.rate} ({self.date})"


@dataclass(frozen=True)
class ConversionRequest:
    from_currency: str
    to_currency: str
    amount: float = 1.0
    date: Optional[str] = None


@dataclass(frozen=True)
class ConversionResult:
    """Converted amount paired with the rate that produced it."""
    amount: float
    exchange_rate: ExchangeRate

    @property
    def from_currency(self) -> str:
        return self.exchange_rate.from_currency

    @property
    def to_currency(self) -> str:
        return self.exchange_rate.to_currency

    @property
    def rate(self) -> float:
        return self.exchange_rate.rate

    @property
    def date(self) -> str:
        return self.exchange_rate.date

    @property
    def timestamp(self) -> datetime:
        return self.exchange_rate.timestamp

    def as_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "rate": self.rate,
            "date": self.date,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class LatestRatesSnapshot:
    base_currency: str
    rates: Dict[str, float]
    timestamp: datetime
    date: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "base_currency": self.base_currency,
            "rates": dict(self.rates),
            "timestamp": self.timestamp.isoformat(),
            "date": self.date,
        }


@dataclass(frozen=True)
class HistoricalRatesSeries:
    """
    Rates for every day in [start_date, end_date] that could be resolved.
    Days that failed are missing from ``rates``, never zero-filled.
    """
    from_currency: str
    to_currency: str
    start_date: str
    end_date: str
    rates: Dict[str, ExchangeRate] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "rates": {day: rate.as_dict() for day, rate in self.rates.items()},
            "start_date": self.start_date,
            "end_date": self.end_date,
        }
