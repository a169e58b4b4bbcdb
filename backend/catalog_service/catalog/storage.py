# backend/catalog_service/catalog/storage.py

import logging
import os
import secrets
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from .config import (
    AZURE_STORAGE_ACCOUNT_KEY,
    AZURE_STORAGE_ACCOUNT_NAME,
    AZURE_STORAGE_CONTAINER_NAME,
    PRODUCT_IMAGE_NAMESPACE,
    STORAGE_BACKEND,
    STORAGE_ROOT,
    STORAGE_URL_PREFIX,
)

logger = logging.getLogger(__name__)


def generate_blob_name(extension: str) -> str:
    """Return a fresh random name such as ``3f9c...e1.jpg`` (40 hex characters)."""
    return f"{secrets.token_hex(20)}{extension}"


class BlobStore(ABC):
    """Blob storage scoped to a single namespace (e.g. ``products``)."""

    def __init__(self, namespace: str = PRODUCT_IMAGE_NAMESPACE):
        self.namespace = namespace

    @abstractmethod
    def put(self, name: str, data: bytes, content_type: str) -> None: ...

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove a blob. Returns False when there was nothing to remove."""

    @abstractmethod
    def exists(self, name: str) -> bool: ...

    @abstractmethod
    def url(self, name: str) -> str: ...


class LocalBlobStore(BlobStore):
    def __init__(
        self,
        root: str,
        namespace: str = PRODUCT_IMAGE_NAMESPACE,
        url_prefix: str = STORAGE_URL_PREFIX,
    ):
        super().__init__(namespace)
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self.root / self.namespace

    def _path(self, name: str) -> Path:
        # Names are generated by us, but never let one escape the namespace
        if not name or os.path.basename(name) != name:
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.directory / name

    def put(self, name, data, content_type):
        path = self._path(name)
        path.write_bytes(data)
        logger.info(f"Catalog Service: Stored '{name}' ({len(data)} bytes) in {self.directory}.")

    def delete(self, name):
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Catalog Service: Blob '{name}' was already absent from {self.directory}.")
            return False
        logger.info(f"Catalog Service: Deleted '{name}' from {self.directory}.")
        return True

    def exists(self, name):
        return self._path(name).is_file()

    def url(self, name):
        return f"{self.url_prefix}/{self.namespace}/{name}"


class AzureBlobStore(BlobStore):
    def __init__(
        self,
        service_client: BlobServiceClient,
        container_name: str,
        namespace: str = PRODUCT_IMAGE_NAMESPACE,
    ):
        super().__init__(namespace)
        self.service_client = service_client
        self.container_name = container_name

    @classmethod
    def from_account(cls, account_name: str, account_key: str, container_name: str):
        service_client = BlobServiceClient(
            account_url=f"https://{account_name}.blob.core.windows.net",
            credential=account_key,
        )
        logger.info("Catalog Service: Azure BlobServiceClient initialized.")
        try:
            service_client.get_container_client(container_name).create_container(
                public_access="blob"
            )
            logger.info(f"Catalog Service: Azure container '{container_name}' created.")
        except ResourceExistsError:
            logger.info(f"Catalog Service: Azure container '{container_name}' already exists.")
        return cls(service_client, container_name)

    def _blob_client(self, name: str):
        return self.service_client.get_blob_client(
            container=self.container_name, blob=f"{self.namespace}/{name}"
        )

    def put(self, name, data, content_type):
        self._blob_client(name).upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        logger.info(
            f"Catalog Service: Uploaded '{name}' ({len(data)} bytes) to Azure container '{self.container_name}'."
        )

    def delete(self, name):
        try:
            self._blob_client(name).delete_blob()
        except ResourceNotFoundError:
            logger.warning(
                f"Catalog Service: Blob '{name}' was already absent from Azure container '{self.container_name}'."
            )
            return False
        logger.info(f"Catalog Service: Deleted '{name}' from Azure container '{self.container_name}'.")
        return True

    def exists(self, name):
        return self._blob_client(name).exists()

    def url(self, name):
        return self._blob_client(name).url


def build_blob_store() -> BlobStore:
    if STORAGE_BACKEND == "azure":
        if not (AZURE_STORAGE_ACCOUNT_NAME and AZURE_STORAGE_ACCOUNT_KEY):
            raise RuntimeError(
                "STORAGE_BACKEND is 'azure' but AZURE_STORAGE_ACCOUNT_NAME/AZURE_STORAGE_ACCOUNT_KEY are not set."
            )
        return AzureBlobStore.from_account(
            AZURE_STORAGE_ACCOUNT_NAME,
            AZURE_STORAGE_ACCOUNT_KEY,
            AZURE_STORAGE_CONTAINER_NAME,
        )
    if STORAGE_BACKEND != "local":
        raise RuntimeError(f"Unknown STORAGE_BACKEND '{STORAGE_BACKEND}'.")
    return LocalBlobStore(STORAGE_ROOT)


@lru_cache()
def get_blob_store() -> BlobStore:
    return build_blob_store()
