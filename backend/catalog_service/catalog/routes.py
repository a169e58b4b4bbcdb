# backend/catalog_service/catalog/routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from .db import get_db
from .exceptions import FormValidationError
from .repository import ProductRepository
from .schemas import max_image_bytes, validate_submission
from .services import ProductService
from .storage import BlobStore, get_blob_store
from .web import flash, templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

OVERRIDE_METHODS = ("PUT", "PATCH", "DELETE")


def get_product_service(
    db: Session = Depends(get_db), blob_store: BlobStore = Depends(get_blob_store)
) -> ProductService:
    return ProductService(ProductRepository(db), blob_store)


def _parse_page(page: Optional[str]) -> int:
    try:
        return max(int(page), 1)
    except (TypeError, ValueError):
        return 1


async def _read_image(image: Optional[UploadFile]) -> Optional[bytes]:
    # Browsers send an empty part when the file input is left blank
    if image is None or not image.filename:
        return None
    # One byte past the limit is enough to tell an upload is too large
    return await image.read(max_image_bytes() + 1)


def _redirect_to_index(request: Request, message: str) -> RedirectResponse:
    flash(request, message)
    return RedirectResponse(
        request.url_for("products.index"), status_code=status.HTTP_303_SEE_OTHER
    )


@router.get("", response_class=HTMLResponse, name="products.index")
def list_products(
    request: Request,
    page: Optional[str] = None,
    service: ProductService = Depends(get_product_service),
):
    products = service.list_products(_parse_page(page))
    return templates.TemplateResponse(
        request,
        "products/index.html",
        {"products": products, "image_url": service.image_url},
    )


@router.get("/create", response_class=HTMLResponse, name="products.create")
def create_form(request: Request):
    return templates.TemplateResponse(
        request, "products/create.html", {"errors": {}, "old": {}}
    )


@router.post("", name="products.store")
async def store_product(
    request: Request,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    service: ProductService = Depends(get_product_service),
):
    raw = {"title": title, "description": description, "price": price, "stock": stock}
    logger.info(f"Catalog Service: Creating product: {title!r}")
    try:
        form, upload = validate_submission(raw, await _read_image(image), image_required=True)
    except FormValidationError as exc:
        logger.info(f"Catalog Service: Rejected new product: {exc}")
        return templates.TemplateResponse(
            request,
            "products/create.html",
            {"errors": exc.errors, "old": raw},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    service.create_product(form, upload)
    return _redirect_to_index(request, "Product saved successfully!")


@router.get("/{product_id}", response_class=HTMLResponse, name="products.show")
def show_product(
    request: Request,
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    product = service.get_product(product_id)
    return templates.TemplateResponse(
        request,
        "products/show.html",
        {"product": product, "image_url": service.image_url},
    )


@router.get("/{product_id}/edit", response_class=HTMLResponse, name="products.edit")
def edit_form(
    request: Request,
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    product = service.get_product(product_id)
    return templates.TemplateResponse(
        request,
        "products/edit.html",
        {
            "product_id": product_id,
            "product": product,
            "old": {},
            "errors": {},
            "image_url": service.image_url,
        },
    )


async def _update(request, product_id, image, raw, service):
    logger.info(f"Catalog Service: Updating product with ID: {product_id}")
    try:
        form, upload = validate_submission(raw, await _read_image(image), image_required=False)
    except FormValidationError as exc:
        logger.info(f"Catalog Service: Rejected update of product {product_id}: {exc}")
        return templates.TemplateResponse(
            request,
            "products/edit.html",
            {
                "product_id": product_id,
                "product": service.repository.get(product_id),
                "old": raw,
                "errors": exc.errors,
                "image_url": service.image_url,
            },
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    service.update_product(product_id, form, upload)
    return _redirect_to_index(request, "Product updated successfully!")


def _delete(request, product_id, service):
    logger.info(f"Catalog Service: Attempting to delete product with ID: {product_id}")
    service.delete_product(product_id)
    return _redirect_to_index(request, "Product deleted successfully!")


@router.api_route("/{product_id}", methods=["PUT", "PATCH"], name="products.update")
async def update_product(
    request: Request,
    product_id: int,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    service: ProductService = Depends(get_product_service),
):
    raw = {"title": title, "description": description, "price": price, "stock": stock}
    return await _update(request, product_id, image, raw, service)


@router.delete("/{product_id}", name="products.destroy")
def delete_product(
    request: Request,
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    return _delete(request, product_id, service)


@router.post("/{product_id}", name="products.override")
async def override_method(
    request: Request,
    product_id: int,
    method: str = Form("", alias="_method"),
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    service: ProductService = Depends(get_product_service),
):
    """Let HTML forms reach PUT/PATCH/DELETE through a hidden ``_method`` field."""
    method = method.upper()
    if method not in OVERRIDE_METHODS:
        return HTMLResponse(
            "Method Not Allowed", status_code=status.HTTP_405_METHOD_NOT_ALLOWED
        )
    if method == "DELETE":
        return _delete(request, product_id, service)
    raw = {"title": title, "description": description, "price": price, "stock": stock}
    return await _update(request, product_id, image, raw, service)
