# backend/catalog_service/catalog/services.py

import logging
from typing import Optional

from azure.core.exceptions import AzureError
from sqlalchemy.exc import SQLAlchemyError

from .config import PRODUCTS_PER_PAGE
from .models import Product
from .repository import ProductRepository
from .schemas import ImageUpload, ProductForm, ProductPage, ProductResponse
from .storage import BlobStore, generate_blob_name

logger = logging.getLogger(__name__)


class ProductService:
    """Coordinates the product table and the image blob store.

    The two stores are not transactional together. Blobs are written before
    the row that references them and removed only after the row mutation has
    committed, so a failure leaves at worst an orphaned blob, never a row
    pointing at a missing one.
    """

    def __init__(self, repository: ProductRepository, blob_store: BlobStore, per_page: int = PRODUCTS_PER_PAGE):
        self.repository = repository
        self.blob_store = blob_store
        self.per_page = per_page

    def list_products(self, page: int = 1) -> ProductPage:
        page = max(page, 1)
        items, total = self.repository.paginate(page, self.per_page)
        logger.info(f"Catalog Service: Listed {len(items)} of {total} products (page={page}).")
        return ProductPage(
            items=[ProductResponse.model_validate(p) for p in items],
            total=total,
            page=page,
            per_page=self.per_page,
        )

    def get_product(self, product_id: int) -> Product:
        return self.repository.get_or_fail(product_id)

    def create_product(self, form: ProductForm, image: ImageUpload) -> Product:
        name = self._store_image(image)
        try:
            product = self.repository.create(image=name, **form.model_dump())
        except SQLAlchemyError:
            self.repository.rollback()
            logger.error(f"Catalog Service: Error creating product '{form.title}'.", exc_info=True)
            self._discard_image(name)
            raise
        logger.info(f"Catalog Service: Product '{product.title}' (ID: {product.id}) created successfully.")
        return product

    def update_product(self, product_id: int, form: ProductForm, image: Optional[ImageUpload] = None) -> Product:
        product = self.repository.get_or_fail(product_id)
        fields = form.model_dump()
        if image is None:
            return self._apply_update(product, fields)

        previous = product.image
        fields["image"] = self._store_image(image)
        try:
            product = self._apply_update(product, fields)
        except SQLAlchemyError:
            self._discard_image(fields["image"])
            raise
        self._discard_image(previous)
        return product

    def delete_product(self, product_id: int) -> None:
        product = self.repository.get_or_fail(product_id)
        image = product.image
        try:
            self.repository.delete(product)
        except SQLAlchemyError:
            self.repository.rollback()
            logger.error(f"Catalog Service: Error deleting product {product_id}.", exc_info=True)
            raise
        logger.info(f"Catalog Service: Product {product_id} deleted successfully.")
        self._discard_image(image)

    def image_url(self, name: str) -> str:
        return self.blob_store.url(name)

    def _apply_update(self, product: Product, fields: dict) -> Product:
        product_id = product.id
        try:
            product = self.repository.update(product, **fields)
        except SQLAlchemyError:
            self.repository.rollback()
            logger.error(f"Catalog Service: Error updating product {product_id}.", exc_info=True)
            raise
        logger.info(f"Catalog Service: Product {product_id} updated successfully.")
        return product

    def _store_image(self, image: ImageUpload) -> str:
        name = generate_blob_name(image.extension)
        self.blob_store.put(name, image.data, image.content_type)
        return name

    def _discard_image(self, name: str) -> None:
        try:
            self.blob_store.delete(name)
        except (OSError, ValueError, AzureError):
            logger.warning(
                f"Catalog Service: Could not delete image '{name}'; it is left orphaned.",
                exc_info=True,
            )
