# backend/main.py
import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analysis_service import get_analysis_service
from api_types import (
    AnalysisReportResponse,
    AnalysisSummaryResponse,
    ContractAnalysisResponse,
    CostTableResponse,
    ErrorResponse,
    EstimateOperationRequest,
    EstimateOperationResponse,
    OperationCostResponse,
    SetCostRequest,
    SubjectRecordResponse,
    SubjectsResponse,
    UsageReportRequest,
)
from fhe_errors import (
    ArithmeticOverflow,
    FheGasError,
    InvalidParameter,
    MismatchedInputLength,
    UnknownOperation,
)
from gas_estimator import UsageReport

load_dotenv()

logger = logging.getLogger(__name__)

CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

# HTTP status per engine error
ERROR_STATUS_CODES: dict[type, int] = {
    InvalidParameter: 400,
    MismatchedInputLength: 400,
    UnknownOperation: 404,
    ArithmeticOverflow: 422,
}

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
    expose_headers=["Content-Length"],
    max_age=600,
)


@app.exception_handler(FheGasError)
async def fhe_gas_error_handler(request: Request, exc: FheGasError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    logger.warning(f"{request.method} {request.url.path} failed with {exc.code}: {exc}")
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=exc.code, detail=str(exc)).model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Malformed request bodies (booleans or strings where integers belong, missing fields)
    are rejected the same way the engine rejects malformed numbers.
    """
    detail = "; ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors())
    logger.warning(f"{request.method} {request.url.path} rejected: {detail}")
    return JSONResponse(
        status_code=400, content=ErrorResponse(error=InvalidParameter.code, detail=detail).model_dump()
    )


# Error bodies documented on routes that can fail
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@app.get("/api/health")
async def health_check():
    """
    Health check endpoint. Also reports whether the estimator is available.
    """
    service = get_analysis_service()
    registered = len(service.list_costs())
    return {"status": "ok", "version": "0.1.0", "available": registered > 0, "registered_operations": registered}


@app.get("/api/costs", response_model=CostTableResponse)
async def list_costs():
    """
    Lists every registered FHE operation with its cost parameters.
    """
    service = get_analysis_service()
    return CostTableResponse(
        operations=[OperationCostResponse(**cost.to_dict()) for cost in service.list_costs()],
        report=service.estimator.cost_table(),
    )


@app.get("/api/costs/{name}", response_model=OperationCostResponse, responses=ERROR_RESPONSES)
async def get_cost(name: str):
    cost = get_analysis_service().get_cost(name)
    return OperationCostResponse(**cost.to_dict())


@app.put("/api/costs/{name}", response_model=OperationCostResponse, responses=ERROR_RESPONSES)
async def set_cost(name: str, request: SetCostRequest):
    """
    Creates or replaces the cost parameters of an operation.
    A base cost of 0 unregisters it.
    """
    cost = get_analysis_service().set_cost(name, request.base_cost, request.per_byte_cost)
    return OperationCostResponse(**cost.to_dict())


@app.post("/api/estimate", response_model=EstimateOperationResponse, responses=ERROR_RESPONSES)
async def estimate_operation(request: EstimateOperationRequest):
    gas = get_analysis_service().estimate_operation(request.operation, request.data_size)
    return EstimateOperationResponse(operation=request.operation, data_size=request.data_size, gas=gas)


@app.post("/api/analyze", response_model=ContractAnalysisResponse, responses=ERROR_RESPONSES)
async def analyze(request: UsageReportRequest):
    """
    Aggregates a usage report into a gas estimate and records it for the subject.
    """
    report = UsageReport(
        subject_id=request.subject_id,
        subject_name=request.subject_name,
        operations=tuple(request.operations),
        counts=tuple(request.counts),
        avg_data_size=request.avg_data_size,
    )
    analysis = get_analysis_service().analyze(report)
    return ContractAnalysisResponse(**analysis.to_dict())


@app.get("/api/analyses", response_model=SubjectsResponse)
async def list_subjects():
    service = get_analysis_service()
    return SubjectsResponse(
        subjects=service.list_subjects(),
        total_analyses=service.store.analysis_count,
        records=[SubjectRecordResponse(**entry.to_dict()) for entry in service.history()],
    )


@app.get("/api/analyses/{subject_id}", response_model=ContractAnalysisResponse)
async def get_analysis(subject_id: str):
    """
    Returns the latest analysis, or an empty one if the subject was never analyzed.
    """
    analysis = get_analysis_service().get_analysis(subject_id)
    return ContractAnalysisResponse(**analysis.to_dict())


@app.get("/api/analyses/{subject_id}/report", response_model=AnalysisReportResponse)
async def get_analysis_report(subject_id: str):
    service = get_analysis_service()
    analysis = service.get_analysis(subject_id)
    return AnalysisReportResponse(
        subject_id=subject_id,
        analysis=ContractAnalysisResponse(**analysis.to_dict()),
        report=service.format_report(subject_id),
    )


@app.get("/api/summary", response_model=AnalysisSummaryResponse)
async def summary():
    return AnalysisSummaryResponse(**get_analysis_service().summary())
