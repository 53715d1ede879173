import copy
import hashlib
from typing import Any, Dict, List, Optional

import yaml

from ..data.schema import MarketConfig, OptionContract

def load_config(config_path: str) -> Dict[str, Any]:
    """Load YAML configuration file."""
    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    return _require_mapping(data, f"config {config_path}")

def merge_configs(base: Dict, override: Dict) -> Dict:
    """Deep merge two config dicts."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result

def get_config_hash(config: Dict) -> str:
    """Generate hash of config for reproducibility tracking."""
    config_str = yaml.dump(config, sort_keys=True)
    return hashlib.sha256(config_str.encode()).hexdigest()[:12]


# ══════════════════════════════════════════════════════════════════════════════
# DEFAULT SCENARIO (mirrors configs/default.yaml)
# ══════════════════════════════════════════════════════════════════════════════

DEFAULT_CONFIG = {
    'market': {
        'current_price': 340.0,   # Starting stock price
        'target_price': 360.0,    # Price assumed reached at every offset
        'risk_free_rate': 0.045,  # 4.5% annual
        'days_to_expiry': 365,    # LEAPS view
    },
    'contracts': [
        {'id': 1, 'label': 'Deep ITM Call', 'strike': 270.0, 'premium_paid': 126.75,
         'iv': 0.6845, 'target_iv': None, 'delta': 0.7745, 'gamma': 0.0013, 'theta': -0.1102},
        {'id': 2, 'label': 'ATM Call', 'strike': 340.0, 'premium_paid': 98.77,
         'iv': 0.6737, 'target_iv': None, 'delta': 0.6608, 'gamma': 0.0016, 'theta': -0.1288},
        {'id': 3, 'label': 'Deep OTM Call', 'strike': 420.0, 'premium_paid': 71.70,
         'iv': 0.6736, 'target_iv': None, 'delta': 0.5409, 'gamma': 0.0017, 'theta': -0.137},
    ],
    'projection': {
        'offsets': [30, 60, 90, 120, 150, 180, 210, 240, 270, 300, 330, 360],
        'min_years_remaining': 0.0001,
        'crush_threshold': 0.10,
    },
}

MARKET_KEYS = ('current_price', 'target_price', 'risk_free_rate', 'days_to_expiry')
CONTRACT_KEYS = ('label', 'strike', 'premium_paid', 'iv')


def get_default_config() -> Dict[str, Any]:
    """Get a mutable copy of the default scenario."""
    return copy.deepcopy(DEFAULT_CONFIG)

def _require_mapping(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping, got {type(value).__name__}")
    return value

def _to_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be numeric, got {value!r}") from None

def _to_int(value: Any, key: str) -> int:
    number = _to_float(value, key)
    if not number.is_integer():
        raise ValueError(f"{key} must be a whole number of days, got {value!r}")
    return int(number)

def _optional_float(value: Any, key: str = 'value') -> Optional[float]:
    """None or blank string means unset; anything else must be numeric."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return _to_float(value, key)

def _missing(entry: Dict[str, Any], keys) -> List[str]:
    """Required keys that are absent or null."""
    return [k for k in keys if entry.get(k) is None]

def market_config_from_dict(market: Dict[str, Any]) -> MarketConfig:
    market = _require_mapping(market, "market config")
    missing = _missing(market, MARKET_KEYS)
    if missing:
        raise ValueError(f"market config missing keys: {', '.join(missing)}")
    return MarketConfig(
        current_price=_to_float(market['current_price'], 'current_price'),
        target_price=_to_float(market['target_price'], 'target_price'),
        risk_free_rate=_to_float(market['risk_free_rate'], 'risk_free_rate'),
        days_to_expiry=_to_int(market['days_to_expiry'], 'days_to_expiry'),
    )

def contract_from_dict(entry: Dict[str, Any], default_id: Any = None) -> OptionContract:
    entry = _require_mapping(entry, f"contract {default_id!r}")
    missing = _missing(entry, CONTRACT_KEYS)
    if missing:
        raise ValueError(f"contract {entry.get('label', default_id)!r} missing keys: {', '.join(missing)}")
    name = entry['label']
    return OptionContract(
        contract_id=entry.get('id', default_id),
        label=str(name),
        strike=_to_float(entry['strike'], f"{name}.strike"),
        premium_paid=_to_float(entry['premium_paid'], f"{name}.premium_paid"),
        implied_volatility=_to_float(entry['iv'], f"{name}.iv"),
        target_implied_volatility=_optional_float(entry.get('target_iv'), f"{name}.target_iv"),
        delta=_optional_float(entry.get('delta'), f"{name}.delta"),
        gamma=_optional_float(entry.get('gamma'), f"{name}.gamma"),
        theta=_optional_float(entry.get('theta'), f"{name}.theta"),
    )

def contracts_from_config(config: Dict[str, Any]) -> List[OptionContract]:
    entries = _require_mapping(config, "config").get('contracts')
    if not isinstance(entries, list):
        raise ValueError("config must contain a 'contracts' list")
    return [contract_from_dict(e, default_id=i + 1) for i, e in enumerate(entries)]

def projection_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Projector keyword arguments, defaults filled from DEFAULT_CONFIG."""
    override = _require_mapping(config, "config").get('projection') or {}
    settings = merge_configs(DEFAULT_CONFIG['projection'], _require_mapping(override, "projection"))
    offsets = settings['offsets']
    if not isinstance(offsets, list):
        raise ValueError(f"projection.offsets must be a list of days, got {offsets!r}")
    return {
        'offsets': [_to_int(d, 'projection.offsets') for d in offsets],
        'min_years_remaining': _to_float(settings['min_years_remaining'], 'projection.min_years_remaining'),
        'crush_threshold': _to_float(settings['crush_threshold'], 'projection.crush_threshold'),
    }
