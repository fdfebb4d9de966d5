from pydantic import BaseModel, Field, TypeAdapter
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

# --- Inbound marketplace payloads ---
# Marketplace APIs send far more than we read; unknown keys are ignored.

class MetaEntry(BaseModel):
    key: str = ""
    value: Any = None
    display_key: Optional[str] = None
    display_value: Any = None

class WooImage(BaseModel):
    src: Optional[str] = None

class WooLineItem(BaseModel):
    name: Optional[str] = None
    quantity: Optional[int] = None
    sku: Optional[str] = None
    image: Optional[WooImage] = None
    meta_data: list[MetaEntry] = Field(default_factory=list)

class WooBilling(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

class WooOrderPayload(BaseModel):
    source: Literal["woocommerce"] = "woocommerce"
    id: int
    billing: WooBilling
    status: Optional[str] = None
    total: Optional[str] = None
    currency_symbol: Optional[str] = None
    customer_note: Optional[str] = None
    payment_method_title: Optional[str] = None
    date_created: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    line_items: list[WooLineItem] = Field(default_factory=list)
    meta_data: list[MetaEntry] = Field(default_factory=list)

class EtsyImage(BaseModel):
    url_fullxfull: Optional[str] = None

class EtsyVariation(BaseModel):
    property_id: Optional[int] = None
    formatted_name: Optional[str] = None
    formatted_value: Optional[str] = None

class EtsyTransaction(BaseModel):
    title: Optional[str] = None
    quantity: Optional[int] = None
    sku: Optional[str] = None
    main_image: Optional[EtsyImage] = None
    variations: list[EtsyVariation] = Field(default_factory=list)

class EtsyMoney(BaseModel):
    amount: int = 0
    divisor: int = 100
    currency_code: str = ""

class EtsyReceiptPayload(BaseModel):
    source: Literal["etsy"] = "etsy"
    receipt_id: int
    status: Optional[str] = None
    name: Optional[str] = None
    recipient_name: Optional[str] = None
    buyer_email: Optional[str] = None
    first_line: Optional[str] = None
    second_line: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    message_from_buyer: Optional[str] = None
    grandtotal: Optional[EtsyMoney] = None
    create_timestamp: Optional[int] = None
    update_timestamp: Optional[int] = None
    transactions: list[EtsyTransaction] = Field(default_factory=list)

MarketplacePayload = Annotated[Union[WooOrderPayload, EtsyReceiptPayload], Field(discriminator="source")]

_payload_adapter = TypeAdapter(MarketplacePayload)

def parse_marketplace_payload(source: str, data: dict) -> Union[WooOrderPayload, EtsyReceiptPayload]:
    """Validate a raw marketplace order dict into its typed payload.

    Raises pydantic.ValidationError when the identity or billing section is
    missing or malformed.
    """
    return _payload_adapter.validate_python({**data, "source": source})

# --- Normalized intermediate ---

class NormalizedItem(BaseModel):
    name: str
    quantity: int = 1
    image_src: str
    sku: Optional[str] = None
    url: Optional[str] = None
    material: Optional[str] = None
    dimensions: Optional[str] = None
    product_note: Optional[str] = None
    sample_data: Optional[str] = None

# --- API models ---

class OrderItemCreate(BaseModel):
    name: str
    quantity: int = 1
    image_src: Optional[str] = None
    sku: Optional[str] = None
    url: Optional[str] = None
    material: Optional[str] = None
    dimensions: Optional[str] = None
    product_note: Optional[str] = None
    sample_data: Optional[str] = None

class ManualOrderCreate(BaseModel):
    customer: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    note: Optional[str] = None
    status: Optional[str] = None
    items: list[OrderItemCreate] = Field(default_factory=list)

class OrderUpdate(BaseModel):
    status: Optional[str] = None
    labels: Optional[list[str]] = None
    assigned_to: Optional[str] = None
    tracking_number: Optional[str] = None
    print_notes: Optional[str] = None
    customer: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None

class StatusUpdate(BaseModel):
    status: str

class Attachment(BaseModel):
    name: str
    type: str
    url: str

class CommentCreate(BaseModel):
    message: str
    attachments: list[Attachment] = Field(default_factory=list)

class ActivityCreate(BaseModel):
    action: str
    details: str

class ScanRequest(BaseModel):
    code: str

class OrderItemRead(BaseModel):
    id: int
    name: str
    quantity: int
    image_src: str
    sku: Optional[str] = None
    url: Optional[str] = None
    material: Optional[str] = None
    dimensions: Optional[str] = None
    product_note: Optional[str] = None
    sample_data: Optional[str] = None
    class Config:
        from_attributes = True

class ActivityRead(BaseModel):
    id: int
    author: str
    action: str
    details: str
    timestamp: datetime
    class Config:
        from_attributes = True

class CommentRead(BaseModel):
    id: int
    author: str
    message: str
    attachments: list[Attachment] = Field(default_factory=list)
    timestamp: datetime
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: int
    barcode: str
    status: str
    labels: list[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    customer: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    note: Optional[str] = None
    print_notes: Optional[str] = None
    tracking_number: Optional[str] = None
    cargo_barcode: Optional[str] = None
    cargo_tracking_number: Optional[str] = None
    payment_method: Optional[str] = None
    total: str
    has_notification: bool
    date: datetime
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead] = Field(default_factory=list)
    comments: list[CommentRead] = Field(default_factory=list)
    activities: list[ActivityRead] = Field(default_factory=list)
    class Config:
        from_attributes = True

class SyncResponse(BaseModel):
    success: bool
    message: str
    logs: list[str] = Field(default_factory=list)
    count: int = 0
