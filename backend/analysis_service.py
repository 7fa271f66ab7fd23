import logging
import threading
from typing import Dict, List, Optional

from analysis_store import AnalysisRecord, AnalysisStore
from fhe_costs import CostRegistry, OperationCost
from fhe_events import EventBus
from gas_estimator import ContractAnalysis, FheGasEstimator, UsageReport

logger = logging.getLogger(__name__)

# Subjects hash onto a fixed set of locks, so memory does not grow with subject count
SUBJECT_LOCK_STRIPES = 64


class AnalysisService:
    """
    Entry point for callers: owns one cost model (registry + estimator), the
    analysis store and the event bus they share.

    Construct one service per independent cost model; nothing here is global.
    """

    def __init__(
        self,
        registry: Optional[CostRegistry] = None,
        store: Optional[AnalysisStore] = None,
        events: Optional[EventBus] = None,
    ):
        self.events = events or (registry.events if registry else EventBus())
        self.registry = registry or CostRegistry(events=self.events)
        self.estimator = FheGasEstimator(self.registry, events=self.events)
        self.store = store or AnalysisStore(events=self.events)
        self._subject_locks = [threading.Lock() for _ in range(SUBJECT_LOCK_STRIPES)]

    def _subject_lock(self, subject_id: str) -> threading.Lock:
        return self._subject_locks[hash(subject_id) % SUBJECT_LOCK_STRIPES]

    # Cost registry

    def set_cost(self, name: str, base_cost: int, per_byte_cost: int) -> OperationCost:
        return self.registry.set_cost(name, base_cost, per_byte_cost)

    def get_cost(self, name: str) -> OperationCost:
        return self.registry.get_cost(name)

    def list_costs(self) -> List[OperationCost]:
        return self.registry.operations()

    # Estimation

    def estimate_operation(self, name: str, data_size: int) -> int:
        return self.estimator.estimate_operation(name, data_size)

    def analyze(self, report: UsageReport) -> ContractAnalysis:
        """
        Analyze a usage report and record the result for its subject.

        Analyze+record for the same subject is serialized, and nothing is
        recorded when the analysis fails.
        """
        with self._subject_lock(report.subject_id):
            try:
                analysis = self.estimator.analyze(report)
            except Exception as e:
                logger.warning(f"Analysis of {report.subject_id} rejected: {e}")
                raise
            self.store.record(report.subject_id, analysis, report.avg_data_size)
        return analysis

    # Analysis store

    def get_analysis(self, subject_id: str) -> ContractAnalysis:
        return self.store.get(subject_id)

    def list_subjects(self) -> List[str]:
        return self.store.list_subjects()

    def history(self) -> List[AnalysisRecord]:
        return self.store.history()

    def summary(self) -> Dict:
        return self.store.summary()

    def format_report(self, subject_id: str) -> str:
        return self.estimator.format_report(self.store.get(subject_id), subject_id)


# Global service instance used by the HTTP API
_service: Optional[AnalysisService] = None


def get_analysis_service() -> AnalysisService:
    """Get or create the global analysis service instance."""
    global _service
    if _service is None:
        logger.info("Initializing AnalysisService...")
        _service = AnalysisService()
    return _service


def reset_analysis_service() -> None:
    """Drop the global instance so the next call starts from the default cost table."""
    global _service
    _service = None
