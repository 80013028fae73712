"""
Pydantic Schemas for Request/Response Validation

Request bodies use the camelCase field names the web client sends.
Response models read ORM objects (``from_attributes``) and dump camelCase.
"""

from datetime import date as date_type, datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cafechain.models import OrderStatus


def parse_order_status(value: str) -> OrderStatus:
    """Case-insensitive order status lookup."""
    try:
        return OrderStatus(value.strip().lower())
    except ValueError:
        raise ValueError(f"Invalid status. Options: {[s.value for s in OrderStatus]}")


# =============================================================================
# AUTH REQUESTS
# =============================================================================

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Asha Rao"])
    email: EmailStr = Field(..., examples=["asha@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    number: str = Field(..., min_length=10, max_length=20, examples=["9876543210"])

    @field_validator("number", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Any:
        # The web client posts phone numbers as JSON numbers
        return str(v) if isinstance(v, int) else v


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SendOTPRequest(BaseModel):
    email: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    email: Optional[str] = None
    verification_code: Optional[str] = Field(None, alias="verificationCode")

    @field_validator("verification_code", mode="before")
    @classmethod
    def coerce_code(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class ResetPasswordRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")


# =============================================================================
# ADMIN REQUESTS
# =============================================================================

class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Joe's"])
    location: str = Field(..., min_length=1, max_length=255, examples=["Main St"])
    number: str = Field(..., min_length=1, max_length=20, examples=["1234567890"])

    @field_validator("number", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class MenuEdit(BaseModel):
    menu_id: int = Field(..., alias="menuId")
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[int] = Field(None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    type: Optional[str] = Field(None, examples=["Veg", "Non-Veg"])


class StatusChangeRequest(BaseModel):
    """
    Body of ``POST /admin/changestatus``.

    With ``menuId`` the boolean ``status`` sets the item's availability;
    with ``orderId`` the string ``status`` sets the order status.
    """
    resto_id: int = Field(..., alias="restoId")
    menu_id: Optional[int] = Field(None, alias="menuId")
    order_id: Optional[int] = Field(None, alias="orderId")
    status: Union[bool, str, None] = None

    @model_validator(mode="after")
    def check_target(self) -> "StatusChangeRequest":
        if self.status is None:
            raise ValueError("Status is required")
        if self.menu_id is None and self.order_id is None:
            raise ValueError("menuId or orderId is required")
        if self.menu_id is not None and not isinstance(self.status, bool):
            raise ValueError("Menu availability status must be true or false")
        if self.menu_id is None and isinstance(self.status, bool):
            raise ValueError("Order status must be a string")
        return self


class OrderStatusChange(BaseModel):
    order_id: int = Field(..., alias="orderId")
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return parse_order_status(v) if isinstance(v, str) else v


class RestaurantStatusChange(BaseModel):
    status: bool


class DateQuery(BaseModel):
    day: date_type = Field(..., alias="date")


class AdCreate(BaseModel):
    menu_name: str = Field(..., alias="menuName", min_length=1)
    discount: int = Field(..., ge=1, le=100)


class AdDelete(BaseModel):
    ads_id: int = Field(..., alias="adsId")


# =============================================================================
# USER REQUESTS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Single line of an order, by menu id or dish name."""
    menu_id: Optional[int] = Field(None, alias="menuId")
    dish_name: Optional[str] = Field(None, alias="dishName")
    quantity: int = Field(..., ge=1, le=99)

    @model_validator(mode="after")
    def check_reference(self) -> "OrderItemCreate":
        if self.menu_id is None and not self.dish_name:
            raise ValueError("Each order item needs a menuId or dishName")
        return self


class OrderCreate(BaseModel):
    total_price: int = Field(..., alias="totalPrice", gt=0)
    order_items: List[OrderItemCreate] = Field(..., alias="orderItems", min_length=1)
    payment_method: Optional[str] = Field("cash", alias="paymentMethod", examples=["cash", "card", "wallet"])
    delivery_type: Optional[str] = Field(None, alias="deliveryType", examples=["delivery", "pickup"])


class WalletTopUp(BaseModel):
    amount: int = Field(..., gt=0)
    mode_of_payment: Optional[str] = Field(None, alias="modeOfPayment", examples=["upi", "card"])


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class RestaurantOut(CamelModel):
    id: int
    name: str
    location: str
    number: str = Field(validation_alias="contact_number")
    open: bool = Field(validation_alias="is_open")
    menu_version: int


class MenuItemOut(CamelModel):
    id: int
    name: str
    price: int
    description: str
    image_url: Optional[str]
    veg: bool = Field(validation_alias="is_veg")
    category: Optional[str]
    availability: bool


class OrderItemOut(CamelModel):
    id: int
    menu_id: Optional[int] = Field(validation_alias="menu_item_id")
    dish_name: str
    unit_price: int
    quantity: int


class CustomerOut(CamelModel):
    id: int
    name: str
    email: str
    number: str = Field(validation_alias="phone_number")


class OrderOut(CamelModel):
    id: int
    resto_id: int = Field(validation_alias="restaurant_id")
    user_id: int
    total_price: int
    status: OrderStatus
    payment_method: Optional[str]
    delivery_type: Optional[str]
    created_at: datetime
    order_items: List[OrderItemOut] = Field(default_factory=list, validation_alias="items")


class OrderDetailOut(OrderOut):
    """Order with the customer attached (admin views)."""
    user: Optional[CustomerOut] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    number: str = Field(validation_alias="phone_number")
    balance: int
    is_verify: bool = Field(validation_alias="is_verified")
    created_at: datetime


class WalletTransactionOut(CamelModel):
    id: int
    amount: int
    mode_of_payment: Optional[str] = Field(validation_alias="payment_mode")
    created_at: datetime


class AdOut(CamelModel):
    id: int
    resto_id: int = Field(validation_alias="restaurant_id")
    menu_id: int = Field(validation_alias="menu_item_id")
    discount: int
    created_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    notification_service: str
    storage_service: str
    timestamp: datetime


def envelope(message: str, **payload: Any) -> dict[str, Any]:
    """Success body shared by every route: ``{success, message, ...payload}``."""
    return {"success": True, "message": message, **payload}
