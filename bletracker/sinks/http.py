"""REST sink: posts records to an HTTP endpoint and queries it by region."""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from bletracker.errors import TransportError
from bletracker.models import Ack, BoundingBox, CanonicalRecord

logger = logging.getLogger(__name__)


class RemoteReceiver(Protocol):
    """Callback target for region query results."""

    def on_beacons_received(self, records: list[CanonicalRecord]) -> Any: ...

    def on_receive_error(self, message: str) -> Any: ...


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class HttpSink:
    """Sink backed by a RESTful beacon service.

    ``transmit`` POSTs one record as JSON to ``url``. ``query_beacons`` reads
    beacons seen inside a bounding box from
    ``{url}/{min_confirmations}/{lon_start}/{lon_end}/{lat_start}/{lat_end}``.
    """

    def __init__(
        self,
        url: str,
        sink_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url.rstrip("/")
        self._sink_id = sink_id or self._url
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._receivers: list[RemoteReceiver] = []

    @property
    def sink_id(self) -> str:
        return self._sink_id

    @property
    def url(self) -> str:
        return self._url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # -- outbound ------------------------------------------------------------

    async def transmit(self, record: CanonicalRecord) -> Ack:
        try:
            response = await self._get_client().post(self._url, json=record.to_payload())
        except httpx.HTTPError as e:
            raise TransportError(f"POST {self._url} failed: {e}") from e
        if response.is_error:
            raise TransportError(
                f"POST {self._url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return Ack(
            sink_id=self._sink_id,
            status_code=response.status_code,
            received_at=datetime.now(timezone.utc),
        )

    # -- inbound -------------------------------------------------------------

    def add_receiver(self, receiver: RemoteReceiver) -> None:
        self._receivers.append(receiver)

    def remove_receiver(self, receiver: RemoteReceiver) -> bool:
        try:
            self._receivers.remove(receiver)
        except ValueError:
            return False
        return True

    def clear_receivers(self) -> None:
        self._receivers.clear()

    def query_url(self, bbox: BoundingBox, min_confirmations: int = 1) -> str:
        return (
            f"{self._url}/{min_confirmations}"
            f"/{bbox.lon_start:f}/{bbox.lon_end:f}/{bbox.lat_start:f}/{bbox.lat_end:f}"
        )

    async def query_beacons(
        self,
        bbox: BoundingBox,
        min_confirmations: int = 1,
        receiver: RemoteReceiver | None = None,
    ) -> list[CanonicalRecord]:
        """Fetch beacons confirmed at least *min_confirmations* times inside *bbox*.

        Results go to *receiver* only when one is given, otherwise to every
        registered receiver. Failures are reported to the same receivers and
        then raised as ``TransportError``.
        """
        receivers = [receiver] if receiver is not None else list(self._receivers)
        url = self.query_url(bbox, min_confirmations)
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError(f"Expected a list of beacons, got {type(payload).__name__}")
            records = [CanonicalRecord.from_payload(item) for item in payload]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Beacon query %s failed: %s", url, e)
            for r in receivers:
                await _maybe_await(r.on_receive_error(str(e)))
            raise TransportError(f"GET {url} failed: {e}") from e

        logger.info("Received %d beacons from %s", len(records), self._sink_id)
        for r in receivers:
            await _maybe_await(r.on_beacons_received(records))
        return records
