"""
API Schemas Module

This module defines Pydantic models for request/response validation.

Request fields the routes require are declared optional here so that a
missing value is answered with the route's own 400 message instead of a
generic validation error.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Payment intents


class CreatePaymentIntentRequest(_Request):
    amount: Optional[float] = None
    currency: str = "usd"
    customer_email: Optional[str] = None
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")


class PaymentIntentCreated(BaseModel):
    client_secret: Optional[str]
    payment_intent_id: str


class ConfirmPaymentRequest(_Request):
    payment_intent_id: Optional[str] = None


class PaymentStatus(BaseModel):
    status: str
    amount: int
    currency: str
    payment_method: Optional[Any] = None


class SavedMethodPaymentRequest(_Request):
    payment_method_id: Optional[str] = None
    amount: Optional[float] = None
    currency: str = "usd"
    customer_id: Optional[str] = None


class SavedMethodPayment(BaseModel):
    payment_intent_id: str
    status: str
    amount: int
    client_secret: Optional[str] = None


# Setup intents


class CreateSetupIntentRequest(_Request):
    customer_email: Optional[str] = None
    usage: Literal["off_session", "on_session"] = "off_session"


class SetupIntentCreated(BaseModel):
    client_secret: Optional[str]
    setup_intent_id: str
    customer_id: Optional[str] = None


class RetrieveSetupIntentRequest(_Request):
    setup_intent_id: Optional[str] = None


class SetupIntentOut(BaseModel):
    id: str
    status: str
    payment_method: Optional[Any] = None
    customer: Optional[Any] = None
    usage: Optional[str] = None
    created: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


# Customers and payment methods


class CreateCustomerRequest(_Request):
    email: Optional[str] = None
    phone: Optional[str] = None


class CustomerReady(BaseModel):
    customerId: str
    email: Optional[str] = None
    message: str = "Customer ready"


class EphemeralKeyRequest(_Request):
    customerId: Optional[str] = None


class CustomerPaymentMethodsRequest(_Request):
    customer_id: Optional[str] = None


class CardSummary(BaseModel):
    id: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    created: Optional[int] = None


class CardList(BaseModel):
    payment_methods: list[CardSummary]
    has_more: bool = False


class DeletePaymentMethodRequest(_Request):
    payment_method_id: Optional[str] = None


# Subscriptions and products


class CreateSubscriptionRequest(_Request):
    customer_id: Optional[str] = None
    price_id: Optional[str] = None
    payment_method_id: Optional[str] = None


class SubscriptionCreated(BaseModel):
    subscription_id: str
    client_secret: Optional[str] = None
    status: str


class CreateProductRequest(_Request):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    currency: str = "usd"
    interval: Literal["day", "week", "month", "year"] = "month"


class ProductCreated(BaseModel):
    product_id: str
    price_id: str
    name: str
    price: float
    interval: str


# Tokens


class ChargeTokenRequest(_Request):
    tokenId: Optional[str] = None
    amount: Optional[int] = None
    currency: str = "usd"
    description: Optional[str] = None


class AttachTokenRequest(_Request):
    customerId: Optional[str] = None
    tokenId: Optional[str] = None


class UpdateCvcTokenRequest(_Request):
    customerId: Optional[str] = None
    cardId: Optional[str] = None
    token: Optional[str] = None


# Webhooks


class WebhookAck(BaseModel):
    received: bool = True
