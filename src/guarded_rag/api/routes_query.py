"""Query endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from guarded_rag.api.dependencies import get_query_pipeline
from guarded_rag.models.schemas import ErrorResponse, QueryRequest, QueryResponse
from guarded_rag.pipeline.query_pipeline import QueryPipeline

router = APIRouter()


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 500, 502, 503, 504)},
)
async def query(
    request: QueryRequest,
    pipeline: QueryPipeline = Depends(get_query_pipeline),
) -> QueryResponse:
    return await pipeline.execute(request.question)
