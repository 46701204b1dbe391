"""Pydantic models for receipts and print requests."""

from pydantic import BaseModel, Field


class ReceiptItem(BaseModel):
    """One row of the receipt item table. Money fields are kept as received."""

    name: str
    qty: int = Field(..., ge=0)
    price: str
    total: str


class ReceiptDocument(BaseModel):
    """Structured receipt composed into a single ESC/POS byte sequence."""

    invoice_number: str
    customer_name: str = ""
    customer_phone: str = ""
    date: str = ""
    time: str = ""
    payment_method: str = ""
    items: list[ReceiptItem] = Field(default_factory=list)
    subtotal: str = "0"
    discount: str = "0"
    total: str = "0"
    barcode: str = Field("", description="Base64 encoded barcode image, optionally a data URL")

    # Optional per-receipt overrides of the configured shop header and footer
    shop_name: str | None = None
    address_lines: list[str] | None = None
    footer: str | None = None


class LabelPrintRequest(BaseModel):
    """Request body for printing a label from a base64 encoded image."""

    image_base64: str = Field(..., min_length=1, description="Base64 image, optionally a data URL")
    copies: int = Field(1, ge=1, le=999, description="Number of labels to print")
