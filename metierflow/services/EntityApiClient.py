# Entity store backed by another instance of this API over HTTP
import httpx
import logging
from typing import Any, List, Optional
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from metierflow.core.config import settings
from metierflow.store.base import EntityStore, Record, coerce_record, schema_for
from metierflow.store.errors import EntityNotFoundError, StoreError

logger = logging.getLogger(__name__)


class _RetryableRead(Exception):
    """Transport failure or 5xx on a read; retried before surfacing as StoreError."""


class RemoteEntityStore(EntityStore):
    """
    Talks to ``<base_url>/<entity>`` with the same REST contract the API exposes:
    GET list, POST create (201), PUT ``/<id>``, DELETE ``/<id>`` (404 when missing).
    """

    name = "remote"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.REMOTE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REMOTE_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _make_request(self, method: str, path: str, entity: str, entity_id: str = None, json: Any = None):
        """Make HTTP request to the remote API"""
        try:
            response = await self.client.request(method, path, json=json)
            logger.info(f"Remote store {method} {path}: {response.status_code}")
            if response.status_code == 404 and entity_id is not None:
                raise EntityNotFoundError(entity, entity_id)
            response.raise_for_status()
            return response.json() if response.content else None

        except httpx.HTTPStatusError as e:
            logger.error(f"Remote store error: {e.response.status_code} - {e.response.text}")
            raise StoreError(f"Remote store error: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Remote store request failed: {str(e)}")
            raise StoreError(f"Remote store request failed: {str(e)}") from e

    @retry(
        stop=stop_after_attempt(settings.REMOTE_READ_RETRIES),
        wait=wait_exponential(multiplier=0.1, max=2),
        retry=retry_if_exception_type(_RetryableRead),
        reraise=True,
    )
    async def _read_with_retry(self, path: str) -> Any:
        try:
            response = await self.client.get(path)
        except httpx.TransportError as e:
            logger.warning(f"⚠️ Remote read {path} failed, retrying: {str(e)}")
            raise _RetryableRead(str(e)) from e
        if response.status_code >= 500:
            logger.warning(f"⚠️ Remote read {path} returned {response.status_code}, retrying")
            raise _RetryableRead(f"HTTP {response.status_code}")
        return response

    async def get_all(self, entity: str) -> List[BaseModel]:
        schema = schema_for(entity)
        try:
            response = await self._read_with_retry(f"/{entity}")
            response.raise_for_status()
            payload = response.json()
        except _RetryableRead as e:
            raise StoreError(f"Remote store unavailable: {str(e)}") from e
        except httpx.HTTPStatusError as e:
            raise StoreError(f"Remote store error: {e.response.status_code}") from e
        except ValueError as e:
            raise StoreError(f"Remote store returned invalid JSON for {entity}") from e

        if not isinstance(payload, list):
            raise StoreError(f"Remote store returned a non-list for {entity}")
        return [coerce_record(entity, item) for item in payload if isinstance(item, dict)]

    async def create(self, entity: str, record: Record) -> BaseModel:
        item = coerce_record(entity, record)
        await self._make_request("POST", f"/{entity}", entity, json=item.model_dump(mode="json", by_alias=True))
        return item

    async def update(self, entity: str, entity_id: str, record: Record) -> BaseModel:
        item = coerce_record(entity, record, entity_id)
        await self._make_request(
            "PUT", f"/{entity}/{entity_id}", entity, entity_id,
            json=item.model_dump(mode="json", by_alias=True),
        )
        return item

    async def delete(self, entity: str, entity_id: str) -> None:
        schema_for(entity)
        await self._make_request("DELETE", f"/{entity}/{entity_id}", entity, entity_id)

    async def replace_all(self, entity: str, records: List[Record]) -> None:
        # No bulk write endpoint: clear, then create one by one.
        for existing in await self.get_all(entity):
            await self.delete(entity, existing.id)
        for record in records:
            await self.create(entity, record)
