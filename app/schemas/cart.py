from typing import List, Optional

from pydantic import BaseModel

from app.schemas.catalog import ProductRead


class QuantityIn(BaseModel):
    quantity: int = 1


class CartLineRead(BaseModel):
    product: ProductRead
    quantity: int
    line_total: float

    class Config:
        from_attributes = True


class CartRead(BaseModel):
    id: Optional[str] = None
    products: List[CartLineRead] = []
    total_quantity: int = 0
    total_price: float = 0.0

    @classmethod
    def from_cart(cls, cart) -> "CartRead":
        if cart is None:
            return cls()
        return cls(
            id=cart.id,
            products=[CartLineRead.model_validate(item) for item in cart.items],
            total_quantity=cart.total_quantity,
            total_price=cart.total_price,
        )
