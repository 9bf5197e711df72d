from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, constr


class PaymentMethod(str, Enum):
    INSTANT_EFT = "instant_eft"
    COD = "cod"
    PAYFAST = "payfast"


class CheckoutRequest(BaseModel):
    delivery_address: constr(strip_whitespace=True, min_length=1, max_length=255)
    payment_method: PaymentMethod
    amount: Decimal = Field(gt=0)
    checkout_token: Optional[constr(strip_whitespace=True, min_length=1, max_length=64)] = None
