"""
Gas Estimation Engine for FHE Smart Contracts.
Turns usage statistics (operation, count, average data size) reported by an
upstream analyzer into gas estimates using the cost registry.

Per operation:  gas = baseCost + perByteCost * dataSize
Per batch:      sum over operations of gas(avgDataSize) * count
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from fhe_costs import UINT256_MAX, CostRegistry, OperationCost, require_uint
from fhe_errors import ArithmeticOverflow, MismatchedInputLength
from fhe_events import EventBus, FheEvent
from templates import LOG_TEMPLATE, get_suggestion

load_dotenv()

logger = logging.getLogger(__name__)


# =============================================================================
# Suggestion Thresholds
# =============================================================================

# An operation is flagged when base cost AND call count are strictly above these
SUGGESTION_MIN_BASE_COST = int(os.getenv("FHE_SUGGESTION_MIN_BASE_COST", "10000"))
SUGGESTION_MIN_COUNT = int(os.getenv("FHE_SUGGESTION_MIN_COUNT", "5"))


def suggestion_for(
    cost: OperationCost,
    count: int,
    min_base_cost: int = SUGGESTION_MIN_BASE_COST,
    min_count: int = SUGGESTION_MIN_COUNT,
) -> Optional[str]:
    """Return an optimization suggestion if the operation is both expensive and frequent."""
    if cost.base_cost > min_base_cost and count > min_count:
        return get_suggestion(cost.name, count, cost.base_cost)
    return None


def checked(value: int) -> int:
    """Fail instead of wrapping when a value leaves the uint256 range."""
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"Gas accumulation overflowed uint256 ({value.bit_length()} bits)")
    return value


# =============================================================================
# Usage Report / Analysis Data Structures
# =============================================================================

@dataclass(frozen=True)
class UsageReport:
    """One batch of FHE usage statistics for a subject (usually a contract address)."""
    subject_id: str
    subject_name: str
    operations: Sequence[str] = field(default_factory=tuple)
    counts: Sequence[int] = field(default_factory=tuple)
    avg_data_size: int = 0

    @property
    def total_calls(self) -> int:
        return sum(self.counts)


@dataclass(frozen=True)
class ContractAnalysis:
    """Result of aggregating one UsageReport."""
    subject_name: str
    total_fhe_ops: int
    estimated_gas: int
    optimization_suggestions: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "ContractAnalysis":
        """Zero value returned for subjects that were never analyzed."""
        return cls(subject_name="", total_fhe_ops=0, estimated_gas=0)

    @property
    def is_empty(self) -> bool:
        return self == ContractAnalysis.empty()

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "subject_name": self.subject_name,
            "total_fhe_ops": self.total_fhe_ops,
            "estimated_gas": self.estimated_gas,
            "optimization_suggestions": list(self.optimization_suggestions),
        }


# =============================================================================
# FHE Gas Estimator
# =============================================================================

class FheGasEstimator:
    """Gas estimator backed by an injected cost registry."""

    def __init__(self, registry: Optional[CostRegistry] = None, events: Optional[EventBus] = None):
        self.registry = registry or CostRegistry(events=events)
        self.events = events or self.registry.events

    def estimate_operation(self, name: str, data_size: int) -> int:
        """
        Estimate gas for a single invocation of an operation.

        Args:
            name: Registered operation name (e.g. "add", "mul")
            data_size: Operand/result size in bytes

        Returns:
            baseCost + perByteCost * data_size

        Raises:
            InvalidParameter: data_size is negative or not an integer
            UnknownOperation: the operation is not registered
        """
        require_uint(data_size, "data_size")
        cost = self.registry.get_cost(name)
        return checked(cost.gas_for(data_size))

    def analyze(self, report: UsageReport) -> ContractAnalysis:
        """
        Aggregate a usage report into a ContractAnalysis.

        All-or-nothing: any invalid count, unknown operation or overflow
        aborts the whole batch. The result is not persisted here.

        Raises:
            MismatchedInputLength: operations and counts differ in length
            InvalidParameter: negative/non-integer count or avg_data_size
            UnknownOperation: any operation in the batch is unregistered
            ArithmeticOverflow: the total leaves the uint256 range
        """
        if len(report.operations) != len(report.counts):
            raise MismatchedInputLength(len(report.operations), len(report.counts))
        require_uint(report.avg_data_size, "avg_data_size")
        for count in report.counts:
            require_uint(count, "count")

        logger.info(
            LOG_TEMPLATE.format(
                subject_id=report.subject_id,
                subject_name=report.subject_name,
                operations=len(report.operations),
                total_calls=report.total_calls,
                avg_data_size=report.avg_data_size,
            )
        )

        total_gas = 0
        total_ops = 0
        suggestions: List[str] = []

        for name, count in zip(report.operations, report.counts):
            cost = self.registry.get_cost(name)
            op_gas = checked(cost.gas_for(report.avg_data_size))
            total_gas = checked(total_gas + checked(op_gas * count))
            total_ops = checked(total_ops + count)

            suggestion = suggestion_for(cost, count)
            if suggestion:
                suggestions.append(suggestion)

        # Only a completed batch announces its suggestions
        for suggestion in suggestions:
            self.events.emit(FheEvent.suggestion_emitted(report.subject_id, suggestion))

        return ContractAnalysis(
            subject_name=report.subject_name,
            total_fhe_ops=total_ops,
            estimated_gas=total_gas,
            optimization_suggestions=tuple(suggestions),
        )

    def format_report(self, analysis: ContractAnalysis, subject_id: Optional[str] = None) -> str:
        """Format a human-readable gas estimation report."""
        label = analysis.subject_name or subject_id or "Unnamed Contract"
        header = f"## FHE Gas Estimation for `{label}`"

        if analysis.is_empty:
            return "\n".join([header, "", "*No analysis has been recorded for this contract.*"])

        report = [
            header,
            "",
            "### Summary",
        ]
        if subject_id:
            report.append(f"- **Contract:** {subject_id}")
        report.extend([
            f"- **Total FHE Operations:** {analysis.total_fhe_ops:,}",
            f"- **Estimated Gas:** {analysis.estimated_gas:,}",
        ])
        if analysis.total_fhe_ops:
            report.append(f"- **Average Gas per Operation:** {analysis.estimated_gas // analysis.total_fhe_ops:,}")

        if analysis.optimization_suggestions:
            report.extend([
                "",
                "### ⚠️ Optimization Suggestions",
                "",
            ])
            for suggestion in analysis.optimization_suggestions:
                report.append(f"- {suggestion}")

        report.extend([
            "",
            "---",
            "*This is a static estimation based on reported usage. Actual gas costs may vary based on:*",
            "- *Per-operation operand sizes (a single average size is assumed)*",
            "- *Cost table updates after this analysis*",
            "- *Runtime conditions*",
        ])

        return "\n".join(report)

    def cost_table(self) -> str:
        """Markdown table of the registered operation costs."""
        lines = [
            "| Operation | Base Cost | Per-Byte Cost |",
            "|-----------|-----------|---------------|",
        ]
        for cost in self.registry.operations():
            lines.append(f"| {cost.name} | {cost.base_cost:,} | {cost.per_byte_cost:,} |")
        return "\n".join(lines)
