# backend/catalog_service/catalog/config.py

import os

POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "catalog")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql://"
    f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@"
    f"{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# "local" keeps images on disk under STORAGE_ROOT, "azure" uses a blob container
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()
STORAGE_ROOT = os.getenv("STORAGE_ROOT", "storage")
STORAGE_URL_PREFIX = "/storage"
PRODUCT_IMAGE_NAMESPACE = "products"

AZURE_STORAGE_ACCOUNT_NAME = os.getenv("AZURE_STORAGE_ACCOUNT_NAME")
AZURE_STORAGE_ACCOUNT_KEY = os.getenv("AZURE_STORAGE_ACCOUNT_KEY")
AZURE_STORAGE_CONTAINER_NAME = os.getenv(
    "AZURE_STORAGE_CONTAINER_NAME", "product-images"
)

DEFAULT_SESSION_SECRET_KEY = "change-me"
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", DEFAULT_SESSION_SECRET_KEY)
CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")

PRODUCTS_PER_PAGE = int(os.getenv("PRODUCTS_PER_PAGE", "10"))
MAX_IMAGE_KILOBYTES = int(os.getenv("MAX_IMAGE_KILOBYTES", "2048"))
