"""FastAPI web application for rrulecodec."""

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from rrulecodec.config import get_max_query_limit
from rrulecodec.models.properties import RuleProperties
from rrulecodec.models.result import Err, Result
from rrulecodec.models.rule import Rule
from rrulecodec.recurrence import operations

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="rrulecodec API",
    description="Parse, validate and expand RFC 5545 recurrence rules",
    version="0.1.0"
)


# Request models
class RuleTextRequest(BaseModel):
    """DTSTART plus RRULE/EXRULE/RDATE/EXDATE lines."""
    rule: str = Field(..., min_length=1, description="Recurrence text, newline-separated content lines")


class NextRequest(RuleTextRequest):
    """Request for the first N occurrences."""
    limit: int = Field(..., ge=0, description="Maximum number of occurrences to return")

    @field_validator("limit")
    @classmethod
    def _bound_limit(cls, v):
        maximum = get_max_query_limit()
        if v > maximum:
            raise ValueError(f"limit must be at most {maximum}")
        return v


class BetweenRequest(RuleTextRequest):
    """Request for occurrences inside a window."""
    start: str = Field(..., description="RFC 3339 timestamp with offset")
    end: str = Field(..., description="RFC 3339 timestamp with offset")
    inclusive: bool = False


class BeforeRequest(RuleTextRequest):
    before: str = Field(..., description="RFC 3339 timestamp with offset")
    inclusive: bool = False


class AfterRequest(RuleTextRequest):
    after: str = Field(..., description="RFC 3339 timestamp with offset")
    inclusive: bool = False


class ValidateRequest(BaseModel):
    """A structured rule plus the anchor it is checked against."""
    rule: Rule
    dtstart: str = Field(..., description="RFC 3339 timestamp with offset")


# Response models
class OccurrencesResponse(BaseModel):
    """Response for occurrence queries."""
    occurrences: List[str]
    count: int


class SerializeResponse(BaseModel):
    rule: str


class ValidateResponse(BaseModel):
    valid: bool
    dtstart: Optional[str] = None


def _unwrap(result: Result):
    """Return the Ok value or raise HTTP 400 carrying the structured error."""
    if isinstance(result, Err):
        raise HTTPException(status_code=400, detail=result.error.model_dump())
    return result.value


def _occurrences(result: Result) -> OccurrencesResponse:
    values = _unwrap(result)
    return OccurrencesResponse(occurrences=values, count=len(values))


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/occurrences/next", response_model=OccurrencesResponse)
async def next_occurrences(request: NextRequest):
    """First ``limit`` occurrences from DTSTART."""
    return _occurrences(operations.next_occurrences(request.rule, request.limit))


@app.post("/occurrences/between", response_model=OccurrencesResponse)
async def occurrences_between(request: BetweenRequest):
    """Occurrences between ``start`` and ``end``."""
    return _occurrences(operations.between(request.rule, request.start, request.end, request.inclusive))


@app.post("/occurrences/just-before", response_model=OccurrencesResponse)
async def occurrence_just_before(request: BeforeRequest):
    """Latest occurrence before ``before`` (zero or one item)."""
    return _occurrences(operations.just_before(request.rule, request.before, request.inclusive))


@app.post("/occurrences/just-after", response_model=OccurrencesResponse)
async def occurrence_just_after(request: AfterRequest):
    """Earliest occurrence after ``after`` (zero or one item)."""
    return _occurrences(operations.just_after(request.rule, request.after, request.inclusive))


@app.post("/rules/properties", response_model=RuleProperties)
async def rule_properties(request: RuleTextRequest):
    """Diagnostic view of the primary rule."""
    return _unwrap(operations.properties(request.rule))


@app.post("/rules/parse", response_model=Rule)
async def parse_rule(request: RuleTextRequest):
    """Parse a bare RRULE value into its structured form."""
    return _unwrap(operations.parse_rule(request.rule))


@app.post("/rules/serialize", response_model=SerializeResponse)
async def serialize_rule(rule: Rule):
    """Render a structured rule as canonical RRULE text."""
    return SerializeResponse(rule=_unwrap(operations.serialize_rule(rule)))


@app.post("/rules/validate", response_model=ValidateResponse)
async def validate_rule(request: ValidateRequest):
    """Validate a structured rule against an anchor."""
    _unwrap(operations.validate_rule(request.rule, request.dtstart))
    return ValidateResponse(valid=True, dtstart=request.dtstart)


@app.exception_handler(Exception)
async def unexpected_error(request, exc):
    logger.error(f"Unexpected error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": f"Internal error: {str(exc)}"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
