# backend/catalog_service/catalog/schemas.py

import io
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .config import MAX_IMAGE_KILOBYTES
from .exceptions import FormValidationError

# Pillow format name -> (stored extension, content type)
ALLOWED_IMAGE_FORMATS = {
    "JPEG": (".jpg", "image/jpeg"),
    "PNG": (".png", "image/png"),
    # Multi-picture JPEG written by many phone cameras
    "MPO": (".jpg", "image/jpeg"),
}
PRODUCT_FIELDS = ("title", "description", "price", "stock")


class ProductForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=255)
    description: str = Field(..., min_length=10)
    price: Decimal = Field(..., allow_inf_nan=False)
    stock: Decimal = Field(..., allow_inf_nan=False)


class ImageUpload(BaseModel):
    """An uploaded image whose content has been checked."""

    data: bytes
    extension: str
    content_type: str


class ProductResponse(BaseModel):
    id: int
    image: str
    title: str
    description: str
    price: Decimal
    stock: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.per_page))

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page


def _message_for(field: str, error: dict) -> str:
    kind = error["type"]
    ctx = error.get("ctx") or {}
    if kind == "missing":
        return f"The {field} field is required."
    if kind == "string_too_short":
        return f"The {field} field must be at least {ctx['min_length']} characters."
    if kind == "string_too_long":
        return f"The {field} field must not be greater than {ctx['max_length']} characters."
    return f"The {field} field must be a number."


def validate_product_fields(raw: Mapping[str, Optional[str]]) -> Tuple[Optional[ProductForm], Dict[str, List[str]]]:
    # Blank inputs count as missing
    data = {
        field: raw[field]
        for field in PRODUCT_FIELDS
        if raw.get(field) is not None and str(raw[field]).strip() != ""
    }
    try:
        return ProductForm(**data), {}
    except PydanticValidationError as exc:
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            field = str(error["loc"][0])
            errors.setdefault(field, []).append(_message_for(field, error))
        return None, errors


def max_image_bytes() -> int:
    return MAX_IMAGE_KILOBYTES * 1024


def validate_image(data: Optional[bytes], required: bool) -> Tuple[Optional[ImageUpload], List[str]]:
    if not data:
        if required:
            return None, ["The image field is required."]
        return None, []

    # Oversized uploads are only read up to the limit, so their content is not decoded
    if len(data) > max_image_bytes():
        return None, [
            f"The image field must not be greater than {MAX_IMAGE_KILOBYTES} kilobytes."
        ]

    detected = None
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            detected = img.format
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ):
        detected = None
    if detected not in ALLOWED_IMAGE_FORMATS:
        return None, ["The image field must be a file of type: jpeg, jpg, png."]

    extension, content_type = ALLOWED_IMAGE_FORMATS[detected]
    return ImageUpload(data=data, extension=extension, content_type=content_type), []


def validate_submission(
    raw: Mapping[str, Optional[str]],
    image_data: Optional[bytes],
    image_required: bool,
) -> Tuple[ProductForm, Optional[ImageUpload]]:
    """Validate a product form submission as a whole.

    All field errors are collected before raising so the form can show every
    message at once.
    """
    image, image_errors = validate_image(image_data, required=image_required)
    form, errors = validate_product_fields(raw)
    if image_errors:
        errors = {"image": image_errors, **errors}
    if errors:
        raise FormValidationError(errors)
    return form, image
