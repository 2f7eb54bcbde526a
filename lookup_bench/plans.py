"""
Plan/profile reporter.

Re-issues representative lookups in explain/profile mode after measurement.
The output is advisory: a probe that fails is logged and recorded in its
`PlanReport`, and the remaining probes still run.
"""

from __future__ import annotations

from typing import List, Sequence

from lookup_bench.domain.models import PlanReport
from lookup_bench.strategies.abstract import PlanProbe
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)


async def collect_plans(probes: Sequence[PlanProbe]) -> List[PlanReport]:
    """Run each probe in order and capture its lines or its failure."""
    reports: List[PlanReport] = []
    for probe in probes:
        try:
            lines = await probe.run()
        except Exception as exc:  # noqa: BLE001 - plan output never invalidates measured results
            log.warning(
                f"[PLAN FAILED] {probe.label}: {exc}",
                extra={"probe": probe.label, "error_type": type(exc).__name__},
            )
            reports.append(PlanReport(label=probe.label, error=f"{type(exc).__name__}: {exc}"))
            continue
        reports.append(PlanReport(label=probe.label, lines=list(lines)))
    return reports


__all__ = ["collect_plans"]
