"""HTTP persistence sink for emitted page samples."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Sequence

import httpx

from telemetry_replay.core.domain.page_sample import PageSample

if TYPE_CHECKING:
    from telemetry_replay.runtime.prometheus_metrics import ReplayMetrics

LOGGER = logging.getLogger(__name__)

BATCH_PATH = "/page-samples/batch"
SINGLE_PATH = "/page-samples"


class HttpRecordSink:
    """Posts records to the storage backend without blocking the caller.

    Requests run on a single background worker, so submissions reach the
    backend in order. At most `max_pending` submissions wait for the worker;
    anything beyond that is dropped with a warning. Errors are logged in the
    worker and never reach the submitter.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 5.0,
        max_pending: int = 100,
        client: httpx.Client | None = None,
        metrics: ReplayMetrics | None = None,
    ) -> None:
        self._client = client if client is not None else httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self._metrics = metrics
        self._max_pending = max_pending
        self._pending = 0
        self._pending_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-sink")
        self._closed = False

    def submit(self, batch: Sequence[PageSample]) -> None:
        if not batch:
            LOGGER.warning("No records to send")
            return
        payload = [sample.to_wire() for sample in batch]
        self._enqueue(BATCH_PATH, payload, records=len(batch))

    def submit_one(self, sample: PageSample) -> None:
        self._enqueue(SINGLE_PATH, sample.to_wire(), records=1)

    def close(self) -> None:
        """Drain queued submissions and release the HTTP client."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        self._client.close()

    # ------------------------------------------------------------------

    def _enqueue(self, path: str, payload: Any, *, records: int) -> None:
        with self._pending_lock:
            if self._closed:
                LOGGER.warning("Sink closed; records dropped", extra={"records": records})
                return
            if self._pending >= self._max_pending:
                LOGGER.warning(
                    "Sink backlog full; records dropped",
                    extra={"records": records, "pending": self._pending},
                )
                return
            self._pending += 1

        try:
            self._executor.submit(self._post, path, payload, records)
        except RuntimeError:
            # Executor shut down between the closed check and submit.
            self._release()
            LOGGER.warning("Sink closed; records dropped", extra={"records": records})

    def _release(self) -> None:
        with self._pending_lock:
            self._pending -= 1

    def _post(self, path: str, payload: Any, records: int) -> None:
        succeeded = False
        try:
            response = self._client.post(path, json=payload)
            response.raise_for_status()
            succeeded = True
            LOGGER.info("Backend send succeeded", extra={"path": path, "records": records})
        except httpx.HTTPStatusError as exc:
            LOGGER.error(
                "Backend send failed",
                extra={"path": path, "status_code": exc.response.status_code, "records": records},
            )
        except httpx.TimeoutException:
            LOGGER.error("Backend send timed out", extra={"path": path, "records": records})
        except httpx.RequestError as exc:
            LOGGER.error(
                "Backend request error",
                extra={"path": path, "error": str(exc), "records": records},
            )
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Unexpected backend send failure", extra={"path": path})
        finally:
            self._release()
            if not succeeded and self._metrics is not None:
                self._metrics.record_sink_failure()
