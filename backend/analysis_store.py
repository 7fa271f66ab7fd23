import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from fhe_events import EventBus, FheEvent
from gas_estimator import ContractAnalysis

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AnalysisRecord:
    """One entry of the analyzed-subject log."""
    subject_id: str
    avg_data_size: int
    recorded_at: datetime

    def to_dict(self) -> Dict:
        return {
            "subject_id": self.subject_id,
            "avg_data_size": self.avg_data_size,
            "recorded_at": self.recorded_at.isoformat(),
        }


class AnalysisStore:
    """
    Latest ContractAnalysis per subject, plus an append-only log of every
    subject ever recorded.

    Re-recording a subject overwrites its analysis but still appends to the
    log, so `list_subjects()` can contain duplicates. Each log entry keeps the
    data size the subject was analyzed with and when it was recorded.
    """

    def __init__(self, events: Optional[EventBus] = None, clock: Callable[[], datetime] = utc_now):
        self.events = events or EventBus()
        self.clock = clock
        self._analyses: Dict[str, ContractAnalysis] = {}
        self._latest: Dict[str, AnalysisRecord] = {}
        self._log: List[AnalysisRecord] = []
        self._count = 0
        self._lock = threading.Lock()

    def record(self, subject_id: str, analysis: ContractAnalysis, avg_data_size: int = 0) -> AnalysisRecord:
        entry = AnalysisRecord(subject_id, avg_data_size, self.clock())
        with self._lock:
            self._analyses[subject_id] = analysis
            self._latest[subject_id] = entry
            self._log.append(entry)
            self._count += 1
        self.events.emit(FheEvent.subject_analyzed(subject_id, analysis.estimated_gas))
        return entry

    def get(self, subject_id: str) -> ContractAnalysis:
        """Stored analysis, or the empty analysis for unknown subjects."""
        with self._lock:
            return self._analyses.get(subject_id, ContractAnalysis.empty())

    def get_record(self, subject_id: str) -> Optional[AnalysisRecord]:
        """Log entry of the latest analysis, None if never analyzed."""
        with self._lock:
            return self._latest.get(subject_id)

    def list_subjects(self) -> List[str]:
        with self._lock:
            return [entry.subject_id for entry in self._log]

    def history(self) -> List[AnalysisRecord]:
        """Full log in recording order, duplicates included."""
        with self._lock:
            return list(self._log)

    @property
    def analysis_count(self) -> int:
        with self._lock:
            return self._count

    def summary(self) -> Dict:
        """Aggregate statistics over the latest analysis of each subject."""
        with self._lock:
            analyses = dict(self._analyses)
            latest = dict(self._latest)
            count = self._count

        total_gas = sum(a.estimated_gas for a in analyses.values())
        most_expensive = max(analyses.items(), key=lambda item: item[1].estimated_gas) if analyses else None

        return {
            "total_analyses": count,
            "distinct_subjects": len(analyses),
            "total_estimated_gas": total_gas,
            "total_data_size": sum(entry.avg_data_size for entry in latest.values()),
            "average_gas": total_gas // len(analyses) if analyses else 0,
            "most_expensive_subject": most_expensive[0] if most_expensive else None,
            "most_expensive_gas": most_expensive[1].estimated_gas if most_expensive else 0,
        }
