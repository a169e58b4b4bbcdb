# backend/catalog_service/catalog/repository.py

from typing import List, Tuple

from sqlalchemy.orm import Session

from .exceptions import ProductNotFoundError
from .models import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int):
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_or_fail(self, product_id: int) -> Product:
        product = self.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def create(self, **fields) -> Product:
        product = Product(**fields)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product: Product, **fields) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.commit()

    def paginate(self, page: int, per_page: int) -> Tuple[List[Product], int]:
        """Newest first. ``id`` breaks ties between rows created in the same instant."""
        query = self.db.query(Product)
        total = query.count()
        items = (
            query.order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total

    def rollback(self) -> None:
        self.db.rollback()
