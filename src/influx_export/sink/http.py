"""InfluxDB HTTP sink – writes batches through the 1.x ``/write`` endpoint."""

from __future__ import annotations

import logging

import requests

from ..config import InfluxConfig
from ..errors import SinkWriteError
from .base import Batch, BaseSink
from .line_protocol import encode_batch

logger = logging.getLogger(__name__)


class InfluxHttpSink(BaseSink):
    """Posts line protocol batches to an InfluxDB server.

    Each :meth:`write` issues exactly one HTTP request; failures are raised
    as :class:`SinkWriteError` and never retried.
    """

    def __init__(
        self,
        config: InfluxConfig,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._url = f"{config.url.rstrip('/')}/write"
        self._session = session or requests.Session()
        if config.headers:
            self._session.headers.update(config.headers)
        logger.info("InfluxHttpSink initialized → %s", config.url)

    def write(self, batch: Batch) -> None:
        if not batch.points:
            logger.debug("Skipping empty batch for %s", batch.database)
            return

        params = {"db": batch.database, "precision": batch.precision}
        if batch.config.retention_policy:
            params["rp"] = batch.config.retention_policy

        try:
            resp = self._session.post(
                self._url,
                params=params,
                data=encode_batch(batch).encode("utf-8"),
                timeout=self._config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise SinkWriteError(f"write to {self._url} failed: {exc}") from exc

        if resp.status_code not in (200, 204):
            raise SinkWriteError(
                f"influxdb returned {resp.status_code}: {_error_text(resp)}",
                status_code=resp.status_code,
            )
        logger.debug("Wrote %d points to %s", len(batch), batch.database)

    def shutdown(self) -> None:
        self._session.close()
        logger.info("InfluxHttpSink shut down")


def _error_text(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip()
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return resp.text.strip()
