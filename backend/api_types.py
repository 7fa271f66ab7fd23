from typing import Optional

from pydantic import BaseModel, StrictInt


# Cost Registry API Types
class SetCostRequest(BaseModel):
    base_cost: StrictInt
    per_byte_cost: StrictInt


class OperationCostResponse(BaseModel):
    name: str
    base_cost: int
    per_byte_cost: int


class CostTableResponse(BaseModel):
    operations: list[OperationCostResponse]
    report: str  # Markdown formatted table


# Gas Estimation API Types
class EstimateOperationRequest(BaseModel):
    operation: str
    data_size: StrictInt = 0


class EstimateOperationResponse(BaseModel):
    operation: str
    data_size: int
    gas: int


class UsageReportRequest(BaseModel):
    subject_id: str
    subject_name: str = ""
    operations: list[str]
    counts: list[StrictInt]
    avg_data_size: StrictInt = 0


class ContractAnalysisResponse(BaseModel):
    subject_name: str
    total_fhe_ops: int
    estimated_gas: int
    optimization_suggestions: list[str] = []


class AnalysisReportResponse(BaseModel):
    subject_id: str
    analysis: ContractAnalysisResponse
    report: str  # Markdown formatted report


class SubjectRecordResponse(BaseModel):
    subject_id: str
    avg_data_size: int
    recorded_at: str  # ISO 8601, UTC


class SubjectsResponse(BaseModel):
    subjects: list[str]
    total_analyses: int
    records: list[SubjectRecordResponse] = []


class AnalysisSummaryResponse(BaseModel):
    total_analyses: int
    distinct_subjects: int
    total_estimated_gas: int
    total_data_size: int
    average_gas: int
    most_expensive_subject: Optional[str]
    most_expensive_gas: int


class ErrorResponse(BaseModel):
    error: str
    detail: str
