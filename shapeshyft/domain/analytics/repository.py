# ============================================================
# DB access layer
# ============================================================
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from shapeshyft.domain.analytics.entities import (
    AnalyticsFilters,
    UsageAggregate,
    UsageByEndpoint,
    UsageEvent,
    UsageReport,
)
from shapeshyft.infrastructure.db.utils import dump_json, utc_now

_AGGREGATE_COLUMNS = """
    COUNT(*) AS total_requests,
    COALESCE(SUM(CASE WHEN success THEN 1 ELSE 0 END), 0) AS successful_requests,
    COALESCE(SUM(CASE WHEN success THEN 0 ELSE 1 END), 0) AS failed_requests,
    COALESCE(SUM(tokens_input), 0) AS total_tokens_input,
    COALESCE(SUM(tokens_output), 0) AS total_tokens_output,
    COALESCE(SUM(estimated_cost_cents), 0) AS total_estimated_cost_cents,
    COALESCE(AVG(latency_ms), 0) AS average_latency_ms
"""


def _aggregate_values(row: Any) -> dict[str, int]:
    return {
        "total_requests": int(row["total_requests"]),
        "successful_requests": int(row["successful_requests"]),
        "failed_requests": int(row["failed_requests"]),
        "total_tokens_input": int(row["total_tokens_input"]),
        "total_tokens_output": int(row["total_tokens_output"]),
        "total_estimated_cost_cents": int(row["total_estimated_cost_cents"]),
        "average_latency_ms": int(round(float(row["average_latency_ms"]))),
    }


class AnalyticsRepositoryProtocol(Protocol):
    def record(self, event: UsageEvent) -> None:
        """Append one usage event."""
        ...


class AnalyticsRepository(AnalyticsRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def record(self, event: UsageEvent) -> None:
        self.db.execute(
            text("""
                INSERT INTO usage_analytics (
                    endpoint_id, timestamp, success, error_message, tokens_input,
                    tokens_output, latency_ms, estimated_cost_cents, request_metadata
                ) VALUES (
                    :endpoint_id, :timestamp, :success, :error_message, :tokens_input,
                    :tokens_output, :latency_ms, :estimated_cost_cents, :request_metadata
                )
            """),
            {
                "endpoint_id": event.endpoint_id,
                "timestamp": utc_now(),
                "success": event.success,
                "error_message": event.error_message,
                "tokens_input": event.tokens_input,
                "tokens_output": event.tokens_output,
                "latency_ms": event.latency_ms,
                "estimated_cost_cents": event.estimated_cost_cents,
                "request_metadata": dump_json(event.request_metadata),
            },
        )
        self.db.commit()

    def summarize(self, endpoint_names: dict[str, tuple[str, str]], filters: AnalyticsFilters) -> UsageReport:
        """
        Aggregate usage for the given endpoints.

        Args:
            endpoint_names: endpoint uuid -> (endpoint_name, project_id), already
                scoped to one user.
            filters: Optional date / project / endpoint narrowing.
        """
        endpoint_ids = [
            uuid for uuid, (_, project_id) in endpoint_names.items()
            if filters.project_id is None or project_id == filters.project_id
        ]
        if filters.endpoint_id is not None:
            endpoint_ids = [uuid for uuid in endpoint_ids if uuid == filters.endpoint_id]
        if not endpoint_ids:
            return UsageReport()

        params: dict[str, object] = {}
        placeholders = []
        for index, uuid in enumerate(endpoint_ids):
            params[f"e{index}"] = uuid
            placeholders.append(f":e{index}")
        conditions = [f"endpoint_id IN ({', '.join(placeholders)})"]

        # Timestamps are ISO-8601 UTC strings, so lexical comparison is chronological.
        if filters.start_date:
            conditions.append("timestamp >= :start_date")
            params["start_date"] = filters.start_date
        if filters.end_date:
            conditions.append("timestamp <= :end_date")
            params["end_date"] = f"{filters.end_date}T23:59:59.999999+00:00"

        where_clause = "WHERE " + " AND ".join(conditions)

        aggregate_row = self.db.execute(
            text(f"SELECT {_AGGREGATE_COLUMNS} FROM usage_analytics {where_clause}"),
            params,
        ).mappings().one()

        grouped = self.db.execute(
            text(f"""
                SELECT endpoint_id, {_AGGREGATE_COLUMNS}
                FROM usage_analytics
                {where_clause}
                GROUP BY endpoint_id
            """),
            params,
        ).mappings()

        by_endpoint = [
            UsageByEndpoint(
                endpoint_id=row["endpoint_id"],
                endpoint_name=endpoint_names.get(row["endpoint_id"], ("unknown", ""))[0],
                **_aggregate_values(row),
            )
            for row in grouped
        ]

        return UsageReport(
            aggregate=UsageAggregate(**_aggregate_values(aggregate_row)),
            by_endpoint=by_endpoint,
        )
