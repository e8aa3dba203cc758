#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Models for checkout requests, catalog records, orders and responses.

Request models are permissive. Semantic validation (required blocks,
recognized payment methods, quantities) is done by the checkout service.
"""

import datetime
from decimal import Decimal
from typing import Annotated, List, Optional, Union

from checkout_engine.enums import InstructionType
from checkout_engine.enums import ItemType
from checkout_engine.enums import OrderStatus
from checkout_engine.enums import OrderType
from checkout_engine.enums import PaymentMethod
from checkout_engine.enums import PaymentStatus
from checkout_engine.enums import Sede
from pydantic import BaseModel
from pydantic import Field
from pydantic import PlainSerializer

DEFAULT_CURRENCY = "ARS"

# Amounts are exact in memory and plain JSON numbers on the wire.
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


# --- Inbound request ---


class CustomerInfo(BaseModel):
  name: Optional[str] = None
  email: Optional[str] = None
  phone: Optional[str] = None


class CheckoutItem(BaseModel):
  type: str
  id: str
  quantity: int = 1


class CheckoutRequest(BaseModel):
  """A raw cart submission.

  `order_type` and `sede` are caller hints. They are fallbacks only; the
  authoritative values are derived from the catalog.
  """

  customer: Optional[CustomerInfo] = None
  items: List[CheckoutItem] = Field(default_factory=list)
  payment_method: Optional[str] = None
  order_type: Optional[str] = None
  sede: Optional[str] = None


# --- Catalog records ---


class ProductRecord(BaseModel):
  """A physical item as resolved from the catalog."""

  id: str
  name: str
  category: Optional[str] = None
  unit: Optional[str] = None
  # Site affinity: 'almagro', 'ciudad-jardin', 'online', 'mixto' or None.
  sede: Optional[str] = None
  location_text: Optional[str] = None
  cash_price: Optional[Decimal] = None
  other_methods_price: Optional[Decimal] = None
  base_price: Optional[Decimal] = None
  price: Optional[Decimal] = None
  images: List[str] = Field(default_factory=list)
  src_url: Optional[str] = None


class OnlineCourseRecord(BaseModel):
  """A digital course as resolved from the catalog."""

  id: str
  title: str


class CustomerRecord(BaseModel):
  id: str
  email: str
  name: str
  phone: Optional[str] = None
  total_orders: int = 0
  total_spent: Money = Decimal(0)


# --- Order aggregate ---


class OrderLineItem(BaseModel):
  type: ItemType
  product_id: Optional[str] = None
  course_id: Optional[str] = None
  name: str
  quantity: int
  unit_price: Money
  total: Money
  image_url: Optional[str] = None


class FulfillmentMetadata(BaseModel):
  order_type: Optional[OrderType] = None
  sede: Optional[Sede] = None
  pickup_locations: List[str] = Field(default_factory=list)
  has_gifts: bool = False
  has_products_with_pickup: bool = False

  def is_empty(self) -> bool:
    return not (
        self.order_type
        or self.sede
        or self.pickup_locations
        or self.has_gifts
        or self.has_products_with_pickup
    )


class CustomerSnapshot(BaseModel):
  """Customer data at purchase time; never updated afterwards."""

  name: str
  email: str
  phone: Optional[str] = None


class Order(BaseModel):
  id: Optional[str] = None
  status: OrderStatus = OrderStatus.PENDING
  payment_status: PaymentStatus = PaymentStatus.PENDING
  payment_method: PaymentMethod
  customer_id: str
  customer_snapshot: CustomerSnapshot
  items: List[OrderLineItem]
  total_amount: Money
  currency: str = DEFAULT_CURRENCY
  metadata: Optional[FulfillmentMetadata] = None
  mp_preference_id: Optional[str] = None
  external_reference: Optional[str] = None
  payment_url: Optional[str] = None
  created_at: Optional[datetime.datetime] = None
  updated_at: Optional[datetime.datetime] = None


# --- Payment preference ---


class PreferenceItem(BaseModel):
  title: str
  unit_price: Money
  quantity: int


class Payer(BaseModel):
  email: str
  name: Optional[str] = None
  phone: Optional[str] = None


class PreferenceRequest(BaseModel):
  items: List[PreferenceItem]
  payer: Payer
  order_id: str
  # Selects the receiving account downstream.
  sede: Optional[Sede] = None


class PreferenceResult(BaseModel):
  preference_id: str
  init_point: str
  sandbox_init_point: Optional[str] = None


# --- Responses ---


class PaymentRedirectResponse(BaseModel):
  success: bool = True
  order_id: str
  payment_url: str
  preference_id: str


class PickupInstructions(BaseModel):
  type: InstructionType
  message: str
  pickup_location: str


class OrderSummary(BaseModel):
  id: str
  total_amount: Money
  payment_method: PaymentMethod
  instructions: PickupInstructions


class PickupInstructionsResponse(BaseModel):
  success: bool = True
  order_id: str
  order: OrderSummary


CheckoutResponse = Union[PaymentRedirectResponse, PickupInstructionsResponse]
