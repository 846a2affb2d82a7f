from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate

class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate):
        product = Product(
            name=data.name,
            price=data.price,
            stock=data.stock
        )
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def list_products(db: AsyncSession, query: Optional[str] = None):
        products = await ProductRepository.get_all_products(db)
        if not query:
            return products

        # Word match: "oak table" finds "Oak Dining Table".
        query_words = set(query.lower().split())
        return [p for p in products if query_words & set(p.name.lower().split())]

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int):
        return await ProductRepository.get_product_by_id(db, product_id)

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int):
        return await ProductRepository.delete_product(db, product_id)
