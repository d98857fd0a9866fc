"""Construction of bucket handles from configuration.

A ``Connection`` binds a project id and a request executor; buckets obtained
from it share the executor and nothing else.
"""

from __future__ import annotations

import requests

from gcsbucket.common.config import Settings, get_settings
from gcsbucket.domain.bucket import Bucket
from gcsbucket.infra.storage.client import RequestExecutor
from gcsbucket.infra.storage.http_bucket import HttpBucket


class ConnectionConfigError(Exception):
    """Raised when settings are insufficient to reach the storage service."""


class Connection:
    """Factory for buckets belonging to one project."""

    def __init__(
        self,
        *,
        project_id: str,
        executor: RequestExecutor,
        settings: Settings,
    ) -> None:
        self._project_id = project_id
        self._executor = executor
        self._settings = settings

    @property
    def project_id(self) -> str:
        return self._project_id

    def get_bucket(self, name: str) -> Bucket:
        """Return a handle for the named bucket.

        No request is made; a missing bucket surfaces on first use.
        """
        if not name:
            raise ConnectionConfigError("bucket name is required")
        return HttpBucket(
            project_id=self._project_id,
            name=name,
            executor=self._executor,
            settings=self._settings,
        )


def _build_session(settings: Settings) -> requests.Session:
    # Unauthenticated: suitable for public buckets and local emulators.
    # Pass an authorized session as ``executor`` for anything else.
    session = requests.Session()
    session.headers["User-Agent"] = settings.GCS_USER_AGENT
    return session


def new_connection(
    settings: Settings | None = None,
    *,
    executor: RequestExecutor | None = None,
) -> Connection:
    """Create a connection from settings.

    Args:
        settings: Configuration; defaults to the environment.
        executor: Authorized request executor. When omitted, a plain
            ``requests.Session`` is used.

    Raises:
        ConnectionConfigError: If GCS_PROJECT_ID is not configured.
    """
    settings = settings or get_settings()
    if not settings.GCS_PROJECT_ID:
        raise ConnectionConfigError("GCS_PROJECT_ID is required")
    return Connection(
        project_id=settings.GCS_PROJECT_ID,
        executor=executor or _build_session(settings),
        settings=settings,
    )


def open_bucket(
    settings: Settings | None = None,
    *,
    executor: RequestExecutor | None = None,
) -> Bucket:
    """Open the bucket named by GCS_BUCKET."""
    settings = settings or get_settings()
    if not settings.GCS_BUCKET:
        raise ConnectionConfigError("GCS_BUCKET is required")
    return new_connection(settings, executor=executor).get_bucket(settings.GCS_BUCKET)
