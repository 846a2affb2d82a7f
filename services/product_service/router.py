from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key
from .schemas import ProductCreate, ProductResponse
from .service import ProductService

# Catalog writes are an admin concern; reads are public.
admin_router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "product", "status": "running"}


@public_router.get("/", response_model=list[ProductResponse])
async def list_products(
    query: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.list_products(db, query)


@public_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductService.get_product_by_id(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@admin_router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.create_product(db, product)


@admin_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    if not await ProductService.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
