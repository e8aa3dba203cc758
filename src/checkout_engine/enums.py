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

"""Enumerations for the checkout engine.

This module defines the standard enums used throughout the engine to
represent payment methods, purchasable item types, order and payment states,
and the physical pickup sites.
"""

import enum


class PaymentMethod(str, enum.Enum):
  MERCADO_PAGO = "mp"
  TRANSFER = "transfer"
  CASH = "cash"
  OTHER = "other"


class ItemType(str, enum.Enum):
  PRODUCT = "product"
  ONLINE_COURSE = "onlineCourse"


class OrderStatus(str, enum.Enum):
  PENDING = "pending"
  APPROVED = "approved"
  REJECTED = "rejected"
  CANCELLED = "cancelled"
  REFUNDED = "refunded"


class PaymentStatus(str, enum.Enum):
  PENDING = "pending"
  PAID = "paid"
  REFUNDED = "refunded"


class OrderType(str, enum.Enum):
  PRESENTIAL_COURSE = "curso_presencial"


class Sede(str, enum.Enum):
  """Physical sites where presential courses run and orders are picked up."""

  ALMAGRO = "almagro"
  CIUDAD_JARDIN = "ciudad-jardin"


class InstructionType(str, enum.Enum):
  CASH_PICKUP = "cash_pickup"
  TRANSFER_PICKUP = "transfer_pickup"


class CheckoutStep(str, enum.Enum):
  UPSERT_CUSTOMER = "upsert_customer"
  CREATE_ORDER = "create_order"
  CREATE_PREFERENCE = "create_preference"
  ATTACH_PREFERENCE = "attach_preference"


class SagaState(str, enum.Enum):
  STARTED = "started"
  ORDER_RECORDED = "order_recorded"
  PREFERENCE_MISSING = "preference_missing"
  COMPLETED = "completed"
