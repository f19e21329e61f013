from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


PREVIEW_LIMIT = 200


class TextPayload(BaseModel):

    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message content cannot be empty")
        return value.strip()

    def preview(self) -> str:
        return self.text[:PREVIEW_LIMIT]

    def body(self) -> str:
        return self.text


class ImagePayload(BaseModel):

    kind: Literal["image"] = "image"
    image_url: str = Field(min_length=1)
    caption: Optional[str] = None

    def preview(self) -> str:
        return "📷 Image"

    def body(self) -> str:
        return self.caption or ""


class ProductCardPayload(BaseModel):
    """Inquiry about a marketplace listing, sent from the product page."""

    kind: Literal["product_card"] = "product_card"
    product_id: Optional[str] = None
    title: str = Field(min_length=1)
    price: str
    image_url: Optional[str] = None
    message: str = ""

    def preview(self) -> str:
        return f"Inquiry: {self.title}"[:PREVIEW_LIMIT]

    def body(self) -> str:
        return self.message


REQUEST_TYPE_LABELS = {
    "quote": "Quote request",
    "consulting": "Consulting request",
    "general": "General request",
}


class ServiceRequestPayload(BaseModel):
    """Request sent to a professional from their directory profile."""

    kind: Literal["service_request"] = "service_request"
    request_type: Literal["quote", "consulting", "general"] = "general"
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    deadline: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None

    def preview(self) -> str:
        return f"{REQUEST_TYPE_LABELS[self.request_type]}: {self.title}"[:PREVIEW_LIMIT]

    def body(self) -> str:
        return self.description


MessagePayload = Annotated[
    Union[TextPayload, ImagePayload, ProductCardPayload, ServiceRequestPayload],
    Field(discriminator="kind"),
]


class DirectConversationRequest(BaseModel):

    recipient_id: str = Field(min_length=1)
    recipient_name: str = ""
    recipient_avatar: str = ""


class DirectConversationResponse(BaseModel):

    conversation_id: str
    is_new: bool


class SendMessageRequest(BaseModel):

    payload: MessagePayload


class FirstContactRequest(DirectConversationRequest):

    payload: MessagePayload


class MessageOut(BaseModel):

    id: str
    conversation_id: str
    sender_id: str
    payload: MessagePayload
    text: str
    image_url: Optional[str] = None
    created_at: datetime


class MessagePage(BaseModel):

    items: List[MessageOut]
    next_cursor: Optional[str] = None
