"""Batch verification --- read, compare, and seal many pairs on a worker pool.

Each ``VerificationJob`` is one trusted/untrusted pair and is processed
independently: read both archives, compare, and issue a seal when they
match. A failure in one pair (malformed archive, mismatch, an unexpected
exception) is recorded in that pair's ``PairOutcome`` and never affects its
siblings. Outcomes come back in job order regardless of completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Sequence

from appseal.core.archive.reader import ArchiveReader
from appseal.core.cancellation import CancellationToken, check
from appseal.core.compare.comparator import compare
from appseal.core.compare.models import ComparisonResult
from appseal.core.seal.issuer import SealIssuer
from appseal.core.seal.models import Seal
from appseal.exceptions import AppSealError, Cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationJob:
    """One trusted/untrusted pair of raw archive bytes."""

    label: str
    trusted: bytes
    untrusted: bytes


@dataclass(frozen=True)
class PairOutcome:
    """What happened to one job.

    ``result`` is set once comparison completed; ``seal`` only when the pair
    matched and was sealed; ``error`` whenever the pair did not get a seal
    for any reason other than a plain mismatch.
    """

    index: int
    label: str
    result: ComparisonResult | None = None
    seal: Seal | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.seal is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "index": self.index,
            "label": self.label,
            "sealed": self.ok,
        }
        if self.result is not None:
            data["summary"] = self.result.summary()
        if self.seal is not None:
            data["seal"] = self.seal.to_dict()
        if self.error is not None:
            if isinstance(self.error, AppSealError):
                data["error"] = self.error.to_dict()
            else:
                data["error"] = {"error": "internal", "message": str(self.error)}
        return data


@dataclass(frozen=True)
class BatchReport:
    """Outcomes of a batch, in job order."""

    outcomes: tuple[PairOutcome, ...] = ()

    @property
    def sealed(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[PairOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)


def run_job(
    index: int,
    job: VerificationJob,
    issuer: SealIssuer,
    reader: ArchiveReader,
    cancel: CancellationToken | None = None,
) -> PairOutcome:
    """Process a single job, capturing any failure in the outcome."""
    result: ComparisonResult | None = None
    try:
        trusted = reader.read(job.trusted, cancel=cancel)
        untrusted = reader.read(job.untrusted, cancel=cancel)
        result = compare(trusted, untrusted, cancel=cancel)
        seal = issuer.issue(result, cancel=cancel)
    except Cancelled as exc:
        return PairOutcome(index=index, label=job.label, result=result, error=exc)
    except AppSealError as exc:
        logger.info("Pair %s not sealed: %s", job.label, exc)
        return PairOutcome(index=index, label=job.label, result=result, error=exc)
    except Exception as exc:
        logger.warning("Failed to verify pair: %s", job.label, exc_info=True)
        return PairOutcome(index=index, label=job.label, result=result, error=exc)
    return PairOutcome(index=index, label=job.label, result=result, seal=seal)


def verify_batch(
    jobs: Sequence[VerificationJob],
    issuer: SealIssuer,
    *,
    reader: ArchiveReader | None = None,
    max_workers: int | None = None,
    cancel: CancellationToken | None = None,
) -> BatchReport:
    """Verify and seal every pair in *jobs*.

    Args:
        jobs: The pairs to process.
        issuer: Seal issuer shared by all workers (signers are stateless).
        reader: Archive reader; defaults to ``ArchiveReader()``.
        max_workers: Worker pool size; ``1`` runs serially in this thread.
        cancel: Optional token shared with every worker.

    Returns:
        A ``BatchReport`` with one outcome per job, in job order.

    Raises:
        Cancelled: If *cancel* was tripped. No partial report is returned.
    """
    reader = reader or ArchiveReader()
    check(cancel)

    if max_workers == 1 or len(jobs) <= 1:
        outcomes = [
            run_job(index, job, issuer, reader, cancel)
            for index, job in enumerate(jobs)
        ]
    else:
        outcomes = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_map = {
                executor.submit(run_job, index, job, issuer, reader, cancel): index
                for index, job in enumerate(jobs)
            }
            for future in as_completed(future_map):
                outcomes.append(future.result())
        outcomes.sort(key=lambda o: o.index)

    check(cancel)
    report = BatchReport(outcomes=tuple(outcomes))
    logger.info(
        "Verified %d pairs: %d sealed, %d failed",
        len(report.outcomes), len(report.sealed), len(report.failed),
    )
    return report
