"""Supabase REST binding.

Talks to the three Supabase services a deployment uses: GoTrue for the
anonymous session, Storage for JSON blobs and PostgREST for the study table.
Calls are made with a blocking ``requests.Session`` and moved off the event
loop with ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import requests

from quire.backends.base import AuthProvider, Backend, ObjectStore, StudyRegistry
from quire.errors import (
    AuthenticationError,
    DownloadError,
    DuplicateStudyError,
    ObjectNotFoundError,
    StudyRegistryError,
    UploadError,
)

logger = logging.getLogger(__name__)

# PostgreSQL unique_violation
UNIQUE_VIOLATION = "23505"

CACHE_SECONDS = 3600


def _filter_literal(value: Any) -> str:
    """Render a value for a PostgREST ``->>`` text comparison.

    Examples
    --------
    >>> _filter_literal(3)
    'eq.3'
    >>> _filter_literal(True)
    'eq.true'
    >>> _filter_literal(None)
    'is.null'
    """
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (dict, list)):
        return f"eq.{json.dumps(value, separators=(',', ':'))}"
    return f"eq.{value}"


def _error_payload(response: requests.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    return payload if isinstance(payload, dict) else {"message": payload}


class SupabaseClient:
    """Thin client for the Supabase REST services.

    Parameters
    ----------
    url : str
        Project URL (e.g., https://xyz.supabase.co).
    anon_key : str
        Public anon key.
    timeout : float
        Per-request timeout in seconds.

    Attributes
    ----------
    session : requests.Session
        HTTP session carrying the API key and, after sign-in, the bearer token.

    Examples
    --------
    >>> client = SupabaseClient("https://xyz.supabase.co", "anon-key")
    >>> client.base_url
    'https://xyz.supabase.co'
    """

    def __init__(self, url: str, anon_key: str, timeout: float = 10.0) -> None:
        self.base_url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {"apikey": anon_key, "Authorization": f"Bearer {anon_key}"}
        )

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request relative to the project URL.

        Raises
        ------
        requests.RequestException
            If the request cannot be completed.
        """
        kwargs.setdefault("timeout", self.timeout)
        return self.session.request(method, f"{self.base_url}{path}", **kwargs)

    def sign_in_anonymously(self) -> str:
        """Create an anonymous user and adopt its access token.

        POST /auth/v1/signup

        Returns
        -------
        str
            Access token.

        Raises
        ------
        AuthenticationError
            If sign-in fails.
        """
        try:
            response = self.request("POST", "/auth/v1/signup", json={"data": {}})
        except requests.RequestException as e:
            raise AuthenticationError(f"Anonymous sign-in failed: {e}") from e
        if not response.ok:
            payload = _error_payload(response)
            raise AuthenticationError(
                f"Anonymous sign-in failed ({response.status_code}): "
                f"{payload.get('msg') or payload.get('message')}"
            )
        token = response.json().get("access_token")
        if not token:
            raise AuthenticationError("Anonymous sign-in returned no access token")
        self.session.headers["Authorization"] = f"Bearer {token}"
        return token


class SupabaseAuthProvider(AuthProvider):
    """Anonymous auth against GoTrue."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    async def sign_in_anonymously(self) -> None:
        """Open an anonymous session on the shared client."""
        await asyncio.to_thread(self.client.sign_in_anonymously)


class SupabaseObjectStore(ObjectStore):
    """Blob storage in one Supabase Storage bucket.

    Parameters
    ----------
    client : SupabaseClient
        Shared REST client.
    bucket : str
        Bucket name.
    """

    def __init__(self, client: SupabaseClient, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def _upload(self, path: str, data: bytes, cache: bool, upsert: bool) -> None:
        headers = {
            "Content-Type": "application/json",
            "cache-control": f"max-age={CACHE_SECONDS if cache else 0}",
            "x-upsert": "true" if upsert else "false",
        }
        try:
            response = self.client.request(
                "POST",
                f"/storage/v1/object/{self.bucket}/{path}",
                data=data,
                headers=headers,
            )
        except requests.RequestException as e:
            raise UploadError(path, str(e)) from e
        if not response.ok:
            payload = _error_payload(response)
            raise UploadError(path, str(payload.get("message", response.status_code)))
        logger.debug(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")

    def _download(self, path: str) -> bytes:
        try:
            response = self.client.request(
                "GET", f"/storage/v1/object/authenticated/{self.bucket}/{path}"
            )
        except requests.RequestException as e:
            raise DownloadError(path, str(e)) from e
        if response.ok:
            return response.content
        payload = _error_payload(response)
        # Storage reports missing objects as 404 or as 400 with a not_found body
        if response.status_code == 404 or payload.get("error") == "not_found" or str(
            payload.get("statusCode")
        ) == "404":
            raise ObjectNotFoundError(path)
        raise DownloadError(path, str(payload.get("message", response.status_code)))

    def _remove(self, paths: list[str]) -> None:
        try:
            response = self.client.request(
                "DELETE",
                f"/storage/v1/object/{self.bucket}",
                json={"prefixes": paths},
            )
        except requests.RequestException as e:
            raise UploadError(", ".join(paths), str(e)) from e
        if not response.ok:
            payload = _error_payload(response)
            raise UploadError(
                ", ".join(paths), str(payload.get("message", response.status_code))
            )

    async def upload(
        self, path: str, data: bytes, cache: bool = False, upsert: bool = True
    ) -> None:
        """Upload bytes to the bucket."""
        await asyncio.to_thread(self._upload, path, data, cache, upsert)

    async def download(self, path: str) -> bytes:
        """Download bytes from the bucket."""
        return await asyncio.to_thread(self._download, path)

    async def remove(self, paths: list[str]) -> None:
        """Delete objects from the bucket."""
        await asyncio.to_thread(self._remove, paths)


class SupabaseStudyRegistry(StudyRegistry):
    """Study table served by PostgREST.

    The table has a unique text column naming the study and a jsonb ``data``
    column holding the study document.

    Parameters
    ----------
    client : SupabaseClient
        Shared REST client.
    table : str
        Table name.
    key_column : str
        Unique column holding the study id.
    """

    def __init__(
        self, client: SupabaseClient, table: str, key_column: str = "database"
    ) -> None:
        self.client = client
        self.table = table
        self.key_column = key_column

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self.table}"

    def _insert(self, study_id: str, data: Mapping[str, Any]) -> None:
        try:
            response = self.client.request(
                "POST",
                self._path,
                json={self.key_column: study_id, "data": dict(data)},
                headers={"Prefer": "return=minimal"},
            )
        except requests.RequestException as e:
            raise StudyRegistryError(f"Insert of study {study_id!r} failed: {e}") from e
        if response.ok:
            return
        payload = _error_payload(response)
        if payload.get("code") == UNIQUE_VIOLATION:
            raise DuplicateStudyError(study_id)
        raise StudyRegistryError(
            f"Insert of study {study_id!r} failed ({response.status_code}): "
            f"{payload.get('message')}"
        )

    def _select(self, study_id: str) -> dict[str, Any] | None:
        try:
            response = self.client.request(
                "GET",
                self._path,
                params={self.key_column: f"eq.{study_id}", "select": "data"},
            )
        except requests.RequestException as e:
            raise StudyRegistryError(f"Read of study {study_id!r} failed: {e}") from e
        if not response.ok:
            payload = _error_payload(response)
            raise StudyRegistryError(
                f"Read of study {study_id!r} failed ({response.status_code}): "
                f"{payload.get('message')}"
            )
        rows = response.json()
        if not rows:
            return None
        return rows[0].get("data") or {}

    def _update(
        self,
        study_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any] | None,
    ) -> bool:
        params = {self.key_column: f"eq.{study_id}"}
        for key, value in (expected or {}).items():
            params[f"data->>{key}"] = _filter_literal(value)
        try:
            response = self.client.request(
                "PATCH",
                self._path,
                params=params,
                json={"data": dict(data)},
                headers={"Prefer": "return=representation"},
            )
        except requests.RequestException as e:
            raise StudyRegistryError(f"Update of study {study_id!r} failed: {e}") from e
        if not response.ok:
            payload = _error_payload(response)
            raise StudyRegistryError(
                f"Update of study {study_id!r} failed ({response.status_code}): "
                f"{payload.get('message')}"
            )
        return bool(response.json())

    async def insert(self, study_id: str, data: Mapping[str, Any]) -> None:
        """Insert the study row."""
        await asyncio.to_thread(self._insert, study_id, data)

    async def select(self, study_id: str) -> dict[str, Any] | None:
        """Read the study document."""
        return await asyncio.to_thread(self._select, study_id)

    async def update(
        self,
        study_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        """Replace the study document, conditionally when ``expected`` is given."""
        return await asyncio.to_thread(self._update, study_id, data, expected)


def create_supabase_backend(
    url: str,
    anon_key: str,
    bucket: str = "revisit",
    table: str = "revisit",
    timeout: float = 10.0,
) -> Backend:
    """Build a backend bound to one Supabase project.

    Parameters
    ----------
    url : str
        Project URL.
    anon_key : str
        Public anon key.
    bucket : str
        Storage bucket for blobs.
    table : str
        Study registry table.
    timeout : float
        Per-request timeout in seconds.

    Returns
    -------
    Backend
        Backend sharing one authenticated client.
    """
    client = SupabaseClient(url, anon_key, timeout=timeout)
    return Backend(
        name="supabase",
        objects=SupabaseObjectStore(client, bucket),
        registry=SupabaseStudyRegistry(client, table),
        auth=SupabaseAuthProvider(client),
    )
