# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class UsageEvent:
    """One execution attempt of an LLM-calling endpoint."""

    endpoint_id: str
    success: bool
    error_message: Optional[str] = None
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None
    latency_ms: Optional[int] = None
    estimated_cost_cents: Optional[int] = None
    request_metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class AnalyticsFilters:
    start_date: Optional[str] = None    # YYYY-MM-DD, inclusive
    end_date: Optional[str] = None      # YYYY-MM-DD, inclusive
    project_id: Optional[str] = None
    endpoint_id: Optional[str] = None


@dataclass
class UsageAggregate:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_tokens_input: int = 0
    total_tokens_output: int = 0
    total_estimated_cost_cents: int = 0
    average_latency_ms: int = 0


@dataclass
class UsageByEndpoint(UsageAggregate):
    endpoint_id: str = ""
    endpoint_name: str = "unknown"


@dataclass
class UsageReport:
    aggregate: UsageAggregate = field(default_factory=UsageAggregate)
    by_endpoint: list[UsageByEndpoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
