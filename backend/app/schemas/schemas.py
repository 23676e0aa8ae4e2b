"""
Pydantic Schemas — Request & Response models for API validation.

Checkout payloads arrive camelCased from the storefront (orderData,
customerInfo, deliveryInfo); gateway callbacks arrive in either snake_case
or camelCase depending on the gateway version.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, AliasChoices


# ──────────────── Checkout order snapshot ────────────────

class CustomerInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class DeliveryInfo(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    delivery_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("delivery_type", "deliveryType", "type")
    )
    delivery_address: Optional[str] = Field(
        None, validation_alias=AliasChoices("delivery_address", "deliveryAddress", "address")
    )


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Union[str, int, None] = None
    name: str = ""
    price: float = 0
    quantity: int = 1
    category: Optional[str] = None


class InvoiceLine(BaseModel):
    category: str = "products"
    name: str
    price: float
    quantity: int = 1


class Invoices(BaseModel):
    model_config = ConfigDict(extra="allow")

    invoices: List[InvoiceLine] = []
    is_hold_required: bool = False
    is_outbox_marked: bool = False


class OrderData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    items: List[OrderItem] = []
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo, alias="customerInfo")
    delivery_info: DeliveryInfo = Field(default_factory=DeliveryInfo, alias="deliveryInfo")
    invoices: Optional[Invoices] = None

    discount: float = 0
    discount_percentage: float = 0
    subtotal: Optional[float] = None
    total_amount: Optional[float] = None


# ──────────────── Payment ────────────────

class PaymentInitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    test: bool = Field(False, description="Accessibility probe, no side effects")
    amount: Optional[Decimal] = Field(None, description="Order total, must be > 0")
    currency: Optional[str] = Field(None, description="3-letter currency code, default TJS")
    gate: Optional[str] = Field(None, description="Gateway channel: korti_milli | vsa | mcr | wallet ...")
    order_data: Optional[OrderData] = Field(None, alias="orderData")


class PaymentInitResponse(BaseModel):
    success: bool = True
    payment_id: int
    order_id: str
    payment_url: str
    message: Optional[str] = None


class CallbackPayload(BaseModel):
    """Gateway callback body. Unknown fields are kept for the raw payload."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    order_id: Optional[str] = Field(None, validation_alias=AliasChoices("order_id", "orderId"))
    amount: Union[Decimal, str, None] = None
    status: Optional[str] = None
    transaction_id: Union[str, int, None] = Field(
        None, validation_alias=AliasChoices("transaction_id", "transactionId")
    )
    token: Optional[str] = None
    message: Optional[str] = None


class CallbackAckResponse(BaseModel):
    success: bool = True
    status: str = "callback_processed"
    payment_status: str
    order_id: str


class PaymentStatusRequest(BaseModel):
    order_id: Optional[str] = None


class PaymentStatusDetail(BaseModel):
    id: int
    order_id: str
    amount: float
    currency: str
    status: str
    transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentStatusResponse(BaseModel):
    success: bool = True
    payment: PaymentStatusDetail


# ──────────────── Notifications ────────────────

class PaymentSmsRequest(BaseModel):
    payment_id: Optional[int] = None
    status: Optional[str] = Field(None, description="Checkpoint: pending | confirmed")


class PaymentSmsResponse(BaseModel):
    success: bool
    message: str = ""
    status: str
    messages_sent: int = 0


class SmsTemplateIn(BaseModel):
    name: str
    phone_number: str
    text_template: str
    sender_address: str = "SAKINA"
    priority: int = 1
    sms_type: int = 2
    is_active: bool = True
    order_index: int = 0


class SmsTemplateOut(SmsTemplateIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


# ──────────────── Admin / Audit ────────────────

class PaymentListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    alif_order_id: str
    amount: float
    currency: str
    status: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_gateway: Optional[str] = None
    alif_transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentListResponse(BaseModel):
    total: int
    payments: List[PaymentListItem]


class PaymentStatsResponse(BaseModel):
    total_payments: int
    status_distribution: Dict[str, int]
    completed_revenue: float
    success_rate: float


class AuditLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    alif_order_id: str
    action: str
    payload_hash: Optional[str] = None
    timestamp: datetime
    log_metadata: Optional[Dict] = None


# ──────────────── Generic ────────────────

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
