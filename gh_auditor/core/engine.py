"""
Audit engine evaluating a rule set against one organisation snapshot.

Rules are independent of each other, so they may run concurrently on a
thread pool. Results are always reassembled in registration order.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from ..logging import get_logger, log_audit_event
from .exceptions import RuleEvaluationError
from .models import AuditReport, OrganisationSnapshot, RuleResult

logger = get_logger(__name__)


class AuditEngine:
    """
    Runs rules against a snapshot and collects an ordered AuditReport.

    The engine performs no I/O and holds no state between runs; the snapshot
    is shared read-only by every rule evaluation.
    """

    def __init__(self, max_workers: Optional[int] = None, parallel: bool = True):
        """
        Initialize the engine.

        Args:
            max_workers: Upper bound on worker threads (defaults to rule count)
            parallel: Evaluate rules concurrently when True
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.parallel = parallel

    def run(self, snapshot: OrganisationSnapshot, rules: Sequence) -> AuditReport:
        """
        Evaluate every rule exactly once.

        Args:
            snapshot: Organisation data to audit
            rules: Rules in registration order

        Returns:
            AuditReport: One result per rule, in the order supplied

        Raises:
            RuleEvaluationError: If a rule breaks its contract and raises
        """
        rules = list(rules)
        if not rules:
            logger.warning("audit.no_rules", organisation=snapshot.organisation)
            return AuditReport(organisation=snapshot.organisation)

        if self.parallel and len(rules) > 1:
            workers = min(len(rules), self.max_workers or len(rules))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="gh-auditor-rule"
            ) as executor:
                # map() yields in submission order regardless of completion order
                results: List[RuleResult] = list(
                    executor.map(lambda rule: self._evaluate(rule, snapshot), rules)
                )
        else:
            results = [self._evaluate(rule, snapshot) for rule in rules]

        report = AuditReport(organisation=snapshot.organisation, results=tuple(results))
        logger.info(
            "audit.complete",
            organisation=snapshot.organisation,
            rules=len(results),
            violations=len(report.violations),
        )
        return report

    def _evaluate(self, rule, snapshot: OrganisationSnapshot) -> RuleResult:
        rule_id = getattr(rule, "rule_id", type(rule).__name__)
        started = time.perf_counter()
        try:
            result = rule.evaluate(snapshot)
        except Exception as e:
            logger.error("audit.rule_failed", rule_id=rule_id, error=str(e))
            raise RuleEvaluationError(rule_id, e) from e

        if not isinstance(result, RuleResult):
            cause = TypeError(
                f"evaluate() returned {type(result).__name__}, expected RuleResult"
            )
            logger.error("audit.rule_failed", rule_id=rule_id, error=str(cause))
            raise RuleEvaluationError(rule_id, cause)

        log_audit_event(
            logger,
            organisation=snapshot.organisation,
            rule_id=result.rule_id,
            status=result.status.value,
            evidence_count=len(result.evidence),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return result
