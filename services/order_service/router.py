from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security import CHECKOUT_RATE_LIMIT, limiter
from .schemas import OrderCreate, OrderResponse, OrderUpdate
from .service import OrderService

router = APIRouter()

@router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}

@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def create_order(request: Request, order: OrderCreate, db: AsyncSession = Depends(get_db)):
    return await OrderService.create_order(db, order)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.get_order(db, order_id)

@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(order_id: str, payload: OrderUpdate, db: AsyncSession = Depends(get_db)):
    return await OrderService.update_order(db, order_id, payload)
