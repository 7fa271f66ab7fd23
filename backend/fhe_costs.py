"""
Cost registry for FHE primitive operations.

Each operation is charged a fixed base cost per invocation plus a per-byte
cost scaled by the average operand size. A base cost of zero marks an
operation as unregistered: the on-chain cost table returns a zeroed struct for
unknown keys, so zero can never mean "free".
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fhe_errors import InvalidParameter, UnknownOperation
from fhe_events import EventBus, FheEvent

logger = logging.getLogger(__name__)


# Costs and totals are uint256 on chain
UINT256_MAX = 2**256 - 1


def require_uint(value: Any, what: str) -> int:
    """Validate that `value` is an int in [0, UINT256_MAX]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{what} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidParameter(f"{what} must be non-negative, got {value}")
    if value > UINT256_MAX:
        raise InvalidParameter(f"{what} does not fit in uint256")
    return value


# =============================================================================
# Default Cost Table
# =============================================================================

# name: (base_cost, per_byte_cost)
DEFAULT_COSTS: Dict[str, tuple[int, int]] = {
    # Arithmetic
    "add": (5_000, 10),
    "sub": (5_000, 10),
    "mul": (15_000, 20),
    "div": (20_000, 25),
    # Comparison
    "gt": (8_000, 15),
    "lt": (8_000, 15),
    "eq": (7_000, 12),
    "ne": (7_000, 12),
    # Bitwise
    "and": (6_000, 10),
    "or": (6_000, 10),
    "not": (4_000, 8),
    # Type conversion
    "cast": (3_000, 5),
}


@dataclass(frozen=True)
class OperationCost:
    """Cost parameters of one FHE primitive."""
    name: str
    base_cost: int
    per_byte_cost: int

    @property
    def is_registered(self) -> bool:
        return self.base_cost != 0

    def gas_for(self, data_size: int) -> int:
        """Gas for a single invocation: base + perByte * dataSize."""
        return self.base_cost + self.per_byte_cost * data_size

    def to_dict(self) -> Dict:
        return {"name": self.name, "base_cost": self.base_cost, "per_byte_cost": self.per_byte_cost}


# =============================================================================
# Cost Registry
# =============================================================================

class CostRegistry:
    """Mutable mapping from operation name to its OperationCost."""

    def __init__(self, events: Optional[EventBus] = None, seed_defaults: bool = True):
        self.events = events or EventBus()
        self._costs: Dict[str, OperationCost] = {}
        self._lock = threading.Lock()
        if seed_defaults:
            for name, (base_cost, per_byte_cost) in DEFAULT_COSTS.items():
                self._costs[name] = OperationCost(name, base_cost, per_byte_cost)

    def set_cost(self, name: str, base_cost: int, per_byte_cost: int) -> OperationCost:
        """
        Create or replace the cost entry for `name`.

        Both fields are replaced together. Setting base_cost to 0 effectively
        unregisters the operation.

        Raises:
            InvalidParameter: name is empty or a cost is negative/non-integer
        """
        if not isinstance(name, str) or not name:
            raise InvalidParameter(f"Operation name must be a non-empty string, got {name!r}")
        require_uint(base_cost, "base_cost")
        require_uint(per_byte_cost, "per_byte_cost")

        cost = OperationCost(name, base_cost, per_byte_cost)
        with self._lock:
            self._costs[name] = cost
        self.events.emit(FheEvent.cost_updated(name, base_cost, per_byte_cost))
        return cost

    def get_cost(self, name: str) -> OperationCost:
        """
        Look up the cost entry for `name`.

        Raises:
            UnknownOperation: no entry, or the entry has the zero base cost
        """
        with self._lock:
            cost = self._costs.get(name)
        if cost is None or not cost.is_registered:
            raise UnknownOperation(name)
        return cost

    def is_registered(self, name: str) -> bool:
        with self._lock:
            cost = self._costs.get(name)
        return cost is not None and cost.is_registered

    def operations(self) -> List[OperationCost]:
        """Registered operations in registration order."""
        with self._lock:
            return [cost for cost in self._costs.values() if cost.is_registered]

    def __len__(self) -> int:
        return len(self.operations())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_registered(name)
