"""
Request and response shapes for the reporting API.

Query parameters arrive as strings (``?r1=810000&r2=810250&sort=memory``)
and are validated with pydantic before reaching the core. Every outcome is a
``(status, payload)`` pair so the HTTP layer only has to serialize it.

Example::

    service = ReportService(SqliteStore("benchmarks.sqlite"))
    status, payload = service.handle(service.comparison, {"r1": "810000"})
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .catalog import MAX_REVISION, RevisionPolicy, list_revisions
from .categories import PRIMARY_CATEGORY, SortCriterion, get_category, get_metric_key
from .change import NEUTRAL_BAND
from .comparison import build_report
from .exceptions import (
    BenchError,
    NoDataError,
    RequestError,
    StorageError,
    UnsupportedCategory,
)
from .series import series_for_metric, series_for_testcase
from .store import MeasurementStore

logger = logging.getLogger(__name__)

Payload = dict[str, Any]
Response = tuple[int, Payload]


class ComparisonQuery(BaseModel):
    """Query of the comparison report. Both revisions are optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    low_revision: int | None = Field(default=None, alias="r1", ge=0, le=MAX_REVISION)
    high_revision: int | None = Field(default=None, alias="r2", ge=0, le=MAX_REVISION)
    sort: str | None = None


class FileSeriesQuery(BaseModel):
    """Query of the single-testcase chart; ``id`` is a LIKE pattern."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)


class MetricSeriesQuery(BaseModel):
    """Query of the all-testcases chart."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    low_revision: int = Field(alias="r1", ge=0, le=MAX_REVISION)
    high_revision: int = Field(alias="r2", ge=0, le=MAX_REVISION)


class ApiError(BaseModel):
    """Structured error response.

    Attributes:
        error_type: Machine-readable error type (e.g., "UNSUPPORTED_CATEGORY")
        message: Human-readable error description
        suggestions: List of actionable suggestions for fixing the error
        context: Additional context (category, revision, etc.)
    """

    error_type: str
    message: str
    suggestions: list[str] = []
    context: dict[str, Any] = {}

    @classmethod
    def from_exception(cls, exc: Exception) -> ApiError:
        if isinstance(exc, BenchError):
            return cls(
                error_type=exc.error_code,
                message=exc.message,
                suggestions=exc.suggestions,
                context={k: _jsonable(v) for k, v in exc.context.items()},
            )
        return cls(
            error_type="INTERNAL_ERROR",
            message=str(exc),
            suggestions=["Check the server log for details"],
        )


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


def status_for(exc: Exception) -> int:
    """HTTP status code for an exception raised while serving a request."""
    if isinstance(exc, (UnsupportedCategory, RequestError)):
        return 400
    if isinstance(exc, NoDataError):
        return 404
    return 500


def _flatten(params: Mapping[str, Any]) -> dict[str, Any]:
    # parse_qs gives lists; the last value wins
    return {k: v[-1] if isinstance(v, list) and v else v for k, v in params.items()}


def parse_query(model: type[BaseModel], params: Mapping[str, Any]) -> Any:
    """Validate query parameters against ``model``.

    Raises:
        RequestError: With one message per invalid parameter
    """
    try:
        return model.model_validate(_flatten(params))
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
            for err in e.errors()
        ]
        raise RequestError(errors, context={"params": sorted(params)}) from e


@dataclass
class ReportService:
    """
    Serves the comparison report and chart datasets from a measurement store.

    Holds no per-request state, so one instance can be shared by all request
    threads.
    """

    store: MeasurementStore
    policy: RevisionPolicy = field(default_factory=RevisionPolicy)
    default_sort: SortCriterion = SortCriterion.CUT_TIME
    neutral_band: float = NEUTRAL_BAND

    def revisions(self, params: Mapping[str, Any] | None = None) -> Payload:
        return {"revisions": list_revisions(self.store, PRIMARY_CATEGORY.table, self.policy.floor)}

    def comparison(self, params: Mapping[str, Any]) -> Payload:
        query: ComparisonQuery = parse_query(ComparisonQuery, params)
        sort = SortCriterion.parse(query.sort) if query.sort else self.default_sort
        report = build_report(
            self.store,
            query.low_revision,
            query.high_revision,
            sort,
            policy=self.policy,
            neutral_band=self.neutral_band,
        )
        return report.to_dict()

    def testcase_series(self, category: str, params: Mapping[str, Any]) -> Payload:
        cat = get_category(category)
        query: FileSeriesQuery = parse_query(FileSeriesQuery, params)
        return series_for_testcase(self.store, cat, query.id, self.policy.floor).to_dict()

    def metric_series(self, metric_key: str, params: Mapping[str, Any]) -> Payload:
        key = get_metric_key(metric_key)
        query: MetricSeriesQuery = parse_query(MetricSeriesQuery, params)
        return series_for_metric(self.store, key, query.low_revision, query.high_revision).to_dict()

    def handle(self, endpoint: Callable[..., Payload], *args: Any) -> Response:
        """Call an endpoint and turn its outcome into ``(status, payload)``."""
        try:
            return 200, endpoint(*args)
        except BenchError as e:
            status = status_for(e)
            if isinstance(e, StorageError):
                logger.error("Storage failure: %s", e.message)
            else:
                logger.info("Rejected request: %s", e.message)
            return status, ApiError.from_exception(e).model_dump()
        except Exception as e:
            logger.exception("Unexpected error in %s", getattr(endpoint, "__name__", endpoint))
            return 500, ApiError.from_exception(e).model_dump()
