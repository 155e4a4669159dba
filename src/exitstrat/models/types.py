"""Domain-specific type aliases for exitstrat.

These aliases document intent at call sites without introducing runtime cost.
"""

from __future__ import annotations

from typing import TypeAlias

# A token ticker symbol, e.g. ``"BTC"``, ``"ETH"``.
TokenSymbol: TypeAlias = str

# Opaque identifiers assigned by the external holdings/strategy store.
HoldingId: TypeAlias = str
StrategyId: TypeAlias = str
PortfolioId: TypeAlias = str

# A percentage on the 0-100 scale (not a 0-1 fraction).
Percentage: TypeAlias = float

# A price value in quote currency.
Price: TypeAlias = float
