"""Bulk SLP transaction validation.

Fans a batch of txids out to the external validator and folds the results
back into a single answer:

- Shape and size problems are rejected before any validator call.
- Calls run concurrently, bounded by a semaphore, each under a timeout.
- All calls settle before an answer is produced; outcomes keep input order.
- The batch is atomic at the response level: if any call failed, the caller
  gets one translated error (the first failure in input order) and no
  partial outcomes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from slp_gateway.adapters.upstream.base import Err, Ok, Result, UpstreamError
from slp_gateway.adapters.upstream.validator import AbstractSlpValidator
from slp_gateway.core.config import settings
from slp_gateway.core.errors import UpstreamAppError
from slp_gateway.core.input_validation import validate_txid_batch
from slp_gateway.schemas.slp import ValidationOutcome
from slp_gateway.services.error_translator import translate

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """Runs per-txid validator calls for a bulk request.

    Attributes:
        validator: Adapter answering ``Ok(valid)`` / ``Err(error)`` per txid.
        max_txids: Batch size cap.
        concurrency: Maximum validator calls in flight per batch.
        timeout_seconds: Deadline for each validator call.
    """

    def __init__(
        self,
        validator: AbstractSlpValidator,
        *,
        max_txids: int | None = None,
        concurrency: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.validator = validator
        self.max_txids = (
            settings.app.validate_bulk_max_txids if max_txids is None else max_txids
        )
        self.concurrency = (
            settings.app.validation_concurrency if concurrency is None else concurrency
        )
        self.timeout_seconds = (
            settings.upstream.timeout_seconds if timeout_seconds is None else timeout_seconds
        )

        if self.max_txids < 1:
            raise ValueError("max_txids must be >= 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    async def _validate_one(self, txid: str, semaphore: asyncio.Semaphore) -> Result[bool]:
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self.validator.validate(txid), timeout=self.timeout_seconds
                )
            except asyncio.TimeoutError as exc:
                logger.warning("validation.timeout", extra={"txid": txid})
                return Err(translate(exc))
            except Exception as exc:  # noqa: BLE001 - every call settles as a Result
                logger.exception("validation.adapter_raised", extra={"txid": txid})
                return Err(translate(exc))

        if not isinstance(result, (Ok, Err)):
            return Err(translate(result))
        return result

    async def _fan_out(self, txids: Sequence[str]) -> list[Result[bool]]:
        semaphore = asyncio.Semaphore(self.concurrency)
        return list(
            await asyncio.gather(*(self._validate_one(txid, semaphore) for txid in txids))
        )

    @staticmethod
    def _first_failure(results: Sequence[Result[bool]]) -> tuple[int, UpstreamError] | None:
        for index, result in enumerate(results):
            if isinstance(result, Err):
                return index, result.error
        return None

    async def validate_bulk(self, txids: Any) -> list[ValidationOutcome]:
        """Validate a batch of txids atomically.

        Args:
            txids: The ``txids`` member of the request body (unchecked).

        Returns:
            One outcome per txid, in input order.

        Raises:
            BadRequestAppError: Missing/non-array, oversized, empty or
                malformed input (no validator call made).
            UpstreamAppError: Any validator call failed or timed out.
        """
        targets = validate_txid_batch(txids, max_items=self.max_txids)
        results = await self._fan_out(targets)

        failure = self._first_failure(results)
        if failure is not None:
            index, error = failure
            failed = sum(1 for result in results if isinstance(result, Err))
            logger.warning(
                "validation.bulk_failed",
                extra={
                    "batch_size": len(targets),
                    "failed": failed,
                    "first_failed_index": index,
                    "status_code": error.status_code,
                },
            )
            raise UpstreamAppError(
                code="validation_upstream_error",
                message=error.message,
                details={"upstream": "validator", "actual_items": len(targets)},
                status_code=error.status_code,
            )

        outcomes = [
            ValidationOutcome(txid=txid, valid=result.value)
            for txid, result in zip(targets, results)
            if isinstance(result, Ok)
        ]
        logger.info(
            "validation.bulk_completed",
            extra={"batch_size": len(targets), "valid": sum(o.valid for o in outcomes)},
        )
        return outcomes

    async def validate_single(self, txid: str) -> ValidationOutcome:
        """Validate one txid with the same failure semantics as a batch of one."""
        return (await self.validate_bulk([txid]))[0]
