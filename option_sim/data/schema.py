from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional


@dataclass(frozen=True)
class MarketConfig:
    current_price: float
    target_price: float
    risk_free_rate: float
    days_to_expiry: int


@dataclass(frozen=True)
class OptionContract:
    contract_id: Hashable
    label: str
    strike: float
    premium_paid: float
    implied_volatility: float
    # None means "no IV change assumed"; 0.0 is a real value
    target_implied_volatility: Optional[float] = None

    # Caller-supplied Greeks, display only
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None

    @property
    def effective_volatility(self) -> float:
        """Volatility used for projection: target IV if set, else current IV."""
        if self.target_implied_volatility is None:
            return self.implied_volatility
        return self.target_implied_volatility

    def has_volatility_crush(self, threshold: float = 0.10) -> bool:
        """True if target IV is set and sits more than `threshold` below current IV."""
        if self.target_implied_volatility is None:
            return False
        return self.target_implied_volatility < self.implied_volatility - threshold

    @property
    def series_key(self) -> str:
        """Chart field name, e.g. 'ATM Call ($340)'."""
        return f"{self.label} (${format_strike(self.strike)})"


def format_strike(strike: float) -> str:
    """Render integral strikes without a trailing '.0'."""
    if float(strike).is_integer():
        return str(int(strike))
    return str(strike)


@dataclass
class ContractDetail:
    label: str
    strike: float
    roi: str
    profit: str
    estimated_price: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "strike": self.strike,
            "roi": self.roi,
            "profit": self.profit,
            "estimated_price": self.estimated_price,
        }


@dataclass
class OffsetGroup:
    offset_days: int
    offset_label: str
    details: List[ContractDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset_days": self.offset_days,
            "offset_label": self.offset_label,
            "details": [d.to_dict() for d in self.details],
        }
