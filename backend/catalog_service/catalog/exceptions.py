# backend/catalog_service/catalog/exceptions.py

from typing import Dict, List


class ProductNotFoundError(Exception):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product with id {product_id} not found")


class FormValidationError(Exception):
    """Raised when a submitted product form does not pass validation.

    ``errors`` maps each offending field to the messages shown next to it.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(f"Invalid fields: {', '.join(sorted(errors))}")
