from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import Request

from app.platform.exceptions import BackendUnavailableError, ObjectNotFoundError
from app.platform.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageObject:
    name: str
    id: Optional[str] = None
    updated_at: Optional[str] = None


class SupabaseStorage:
    """
    Thin async client for the Supabase Storage REST API.

    One instance is created at application startup and shared by every request
    (see ``get_storage``). Listings are single-page: anything past ``list_limit``
    objects is not returned.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        list_limit: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.list_limit = list_limit
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SupabaseStorage":
        return cls(
            settings.SUPABASE_URL,
            settings.storage_key,
            timeout=settings.STORAGE_TIMEOUT,
            list_limit=settings.STORAGE_LIST_LIMIT,
            transport=transport,
        )

    async def list_objects(self, bucket: str, *, sort_by_name: bool = True) -> list[StorageObject]:
        payload = {"prefix": "", "limit": self.list_limit, "offset": 0}
        if sort_by_name:
            payload["sortBy"] = {"column": "name", "order": "asc"}

        try:
            response = await self._client.post(f"/storage/v1/object/list/{bucket}", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Listing bucket {bucket} failed: {e}")
            raise BackendUnavailableError(f"Erreur listing bucket {bucket}: {e}") from e

        return [
            StorageObject(
                name=item.get("name") or "",
                id=item.get("id"),
                updated_at=item.get("updated_at"),
            )
            for item in response.json() or []
        ]

    def public_url(self, bucket: str, filename: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(filename)}"

    async def download(self, bucket: str, filename: str) -> bytes:
        url = self.public_url(bucket, filename)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Download of {url} failed: {e}")
            raise BackendUnavailableError(f"Erreur téléchargement: {e}") from e

        if response.is_error:
            logger.warning(f"Download of {url} returned {response.status_code}")
            raise ObjectNotFoundError(f"Erreur {response.status_code}: Fichier introuvable")
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()


def get_storage(request: Request) -> SupabaseStorage:
    """FastAPI dependency returning the storage client built at startup."""
    return request.app.state.storage
