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

"""Checkout service for turning a cart submission into an order.

This module provides the `CheckoutService` class, which runs one checkout
from the raw request to the payment hand-off:

- Validating the request before any write.
- Resolving the catalog, pricing the line items and inferring fulfillment.
- Upserting the customer and recording the order in `pending/pending` state.
- Dispatching on the payment method: creating a payment preference for the
  electronic gateway, or returning pickup instructions for cash and
  transfer payments.

The writes (customer upsert, order creation, preference creation) are not
transactional. They run as a short saga whose named steps are logged. If the
payment preference cannot be created, the order stays recorded without a
preference (`preference_missing`) and `retry_payment_preference` re-runs just
those steps.
"""

import dataclasses
import logging
from typing import List, Optional, Tuple

from checkout_engine import sites
from checkout_engine.enums import CheckoutStep
from checkout_engine.enums import InstructionType
from checkout_engine.enums import ItemType
from checkout_engine.enums import OrderStatus
from checkout_engine.enums import PaymentMethod
from checkout_engine.enums import PaymentStatus
from checkout_engine.enums import SagaState
from checkout_engine.exceptions import InvalidCheckoutRequestError
from checkout_engine.exceptions import OrderNotRetryableError
from checkout_engine.exceptions import PreferenceCreationFailedError
from checkout_engine.exceptions import ResourceNotFoundError
from checkout_engine.models import CheckoutRequest
from checkout_engine.models import CheckoutResponse
from checkout_engine.models import CustomerInfo
from checkout_engine.models import CustomerRecord
from checkout_engine.models import CustomerSnapshot
from checkout_engine.models import FulfillmentMetadata
from checkout_engine.models import Order
from checkout_engine.models import OrderSummary
from checkout_engine.models import Payer
from checkout_engine.models import PaymentRedirectResponse
from checkout_engine.models import PickupInstructions
from checkout_engine.models import PickupInstructionsResponse
from checkout_engine.models import PreferenceItem
from checkout_engine.models import PreferenceRequest
from checkout_engine.payments import PaymentPreferenceProvider
from checkout_engine.services.catalog_loader import CatalogLoader
from checkout_engine.services.fulfillment_service import FulfillmentService
from checkout_engine.services.pricing_service import PricedCart
from checkout_engine.services.pricing_service import PricingService
from checkout_engine.stores import CustomerStore
from checkout_engine.stores import OrderStore

logger = logging.getLogger(__name__)

_VALID_ITEM_TYPES = [t.value for t in ItemType]
_VALID_PAYMENT_METHODS = [m.value for m in PaymentMethod]


@dataclasses.dataclass
class CheckoutSaga:
  """Progress of one checkout through its write steps."""

  state: SagaState = SagaState.STARTED
  completed_steps: List[CheckoutStep] = dataclasses.field(default_factory=list)
  customer_id: Optional[str] = None
  order_id: Optional[str] = None

  def advance(self, step: CheckoutStep) -> None:
    self.completed_steps.append(step)
    logger.info("Checkout step %s done (order=%s)", step.value, self.order_id)


class CheckoutService:
  """Service for composing orders from cart submissions."""

  def __init__(
      self,
      catalog_loader: CatalogLoader,
      pricing_service: PricingService,
      fulfillment_service: FulfillmentService,
      customers: CustomerStore,
      orders: OrderStore,
      payment_provider: PaymentPreferenceProvider,
      pickup_reservation_hours: int = 48,
  ):
    self.catalog_loader = catalog_loader
    self.pricing_service = pricing_service
    self.fulfillment_service = fulfillment_service
    self.customers = customers
    self.orders = orders
    self.payment_provider = payment_provider
    self.pickup_reservation_hours = pickup_reservation_hours

  def validate_request(
      self, checkout_req: CheckoutRequest
  ) -> Tuple[CustomerInfo, PaymentMethod]:
    """Validates a request before anything is read or written.

    Returns:
      The customer block and the parsed payment method.

    Raises:
      InvalidCheckoutRequestError: on missing fields, an empty cart, an
        unknown item type, a quantity below one or an unknown payment method.
    """
    customer = checkout_req.customer
    if customer is None or not checkout_req.payment_method:
      raise InvalidCheckoutRequestError(
          "Incomplete request: customer, items and payment_method are required"
      )
    if not (customer.name or "").strip() or not (customer.email or "").strip():
      raise InvalidCheckoutRequestError("Customer name and email are required")
    if not checkout_req.items:
      raise InvalidCheckoutRequestError("The cart is empty")

    for i, item in enumerate(checkout_req.items):
      if item.type not in _VALID_ITEM_TYPES:
        raise InvalidCheckoutRequestError(
            f"items[{i}].type must be one of: {', '.join(_VALID_ITEM_TYPES)}"
        )
      if not item.id.strip():
        raise InvalidCheckoutRequestError(f"items[{i}].id is required")
      if item.quantity < 1:
        raise InvalidCheckoutRequestError(f"items[{i}].quantity must be >= 1")

    if checkout_req.payment_method not in _VALID_PAYMENT_METHODS:
      raise InvalidCheckoutRequestError(
          "Invalid payment method. Must be one of: "
          + ", ".join(_VALID_PAYMENT_METHODS)
      )
    return customer, PaymentMethod(checkout_req.payment_method)

  async def checkout(self, checkout_req: CheckoutRequest) -> CheckoutResponse:
    """Runs a checkout end to end."""
    customer, payment_method = self.validate_request(checkout_req)
    logger.info(
        "Processing checkout: %d items, payment method %s",
        len(checkout_req.items),
        payment_method.value,
    )

    catalog = await self.catalog_loader.load(checkout_req.items)
    priced = self.pricing_service.price_items(
        checkout_req.items, catalog, payment_method
    )
    metadata = self.fulfillment_service.resolve(
        priced.line_items,
        catalog.products,
        sede_hint=checkout_req.sede,
        order_type_hint=checkout_req.order_type,
    )

    saga = CheckoutSaga()
    customer_record = await self._upsert_customer(saga, customer)
    order = self._build_order(
        customer_record, customer, payment_method, priced, metadata
    )
    order = await self._create_order(saga, order)

    if payment_method == PaymentMethod.MERCADO_PAGO:
      return await self._request_preference(saga, order)
    saga.state = SagaState.COMPLETED
    return self._pickup_instructions(order)

  async def get_order(self, order_id: str) -> Order:
    """Retrieves an order."""
    order = await self.orders.get(order_id)
    if order is None:
      raise ResourceNotFoundError("Order not found")
    return order

  async def retry_payment_preference(
      self, order_id: str
  ) -> PaymentRedirectResponse:
    """Re-runs only the payment preference steps for a recorded order.

    An order that already has a preference gets it back without a provider
    call.

    Raises:
      ResourceNotFoundError: if the order does not exist.
      OrderNotRetryableError: if the order is not a pending gateway order.
      PreferenceCreationFailedError: if the preference fails again.
    """
    order = await self.get_order(order_id)
    if order.payment_method != PaymentMethod.MERCADO_PAGO:
      raise OrderNotRetryableError(
          f"Order {order_id} is not paid through the payment gateway"
      )
    if (
        order.status != OrderStatus.PENDING
        or order.payment_status != PaymentStatus.PENDING
    ):
      raise OrderNotRetryableError(
          f"Order {order_id} is {order.status.value}/"
          f"{order.payment_status.value}, not pending"
      )
    if order.mp_preference_id and order.payment_url:
      return PaymentRedirectResponse(
          order_id=order_id,
          payment_url=order.payment_url,
          preference_id=order.mp_preference_id,
      )

    saga = CheckoutSaga(
        state=SagaState.PREFERENCE_MISSING,
        customer_id=order.customer_id,
        order_id=order_id,
    )
    logger.info("Retrying payment preference for order %s", order_id)
    return await self._request_preference(saga, order)

  # --- Saga steps ---

  async def _upsert_customer(
      self, saga: CheckoutSaga, customer: CustomerInfo
  ) -> CustomerRecord:
    record = await self.customers.upsert(
        email=customer.email.strip(),
        name=customer.name.strip(),
        phone=customer.phone or None,
    )
    saga.customer_id = record.id
    saga.advance(CheckoutStep.UPSERT_CUSTOMER)
    return record

  async def _create_order(self, saga: CheckoutSaga, order: Order) -> Order:
    order_id = await self.orders.create(order)
    saga.order_id = order_id
    saga.state = SagaState.ORDER_RECORDED
    saga.advance(CheckoutStep.CREATE_ORDER)
    return order.model_copy(update={"id": order_id})

  async def _request_preference(
      self, saga: CheckoutSaga, order: Order
  ) -> PaymentRedirectResponse:
    """Creates the payment preference and attaches it to the order."""
    try:
      preference = await self.payment_provider.create_preference(
          self._preference_request(order)
      )
      saga.advance(CheckoutStep.CREATE_PREFERENCE)
      await self.orders.update(
          order.id,
          {
              "mp_preference_id": preference.preference_id,
              "external_reference": order.id,
              "payment_url": preference.init_point,
          },
      )
      saga.advance(CheckoutStep.ATTACH_PREFERENCE)
    except Exception as e:  # pylint: disable=broad-exception-caught
      saga.state = SagaState.PREFERENCE_MISSING
      logger.error(
          "Payment preference failed for order %s after steps %s: %s",
          order.id,
          [step.value for step in saga.completed_steps],
          e,
      )
      raise PreferenceCreationFailedError(
          f"Error creating the payment preference: {e}", order_id=order.id
      ) from e

    saga.state = SagaState.COMPLETED
    return PaymentRedirectResponse(
        order_id=order.id,
        payment_url=preference.init_point,
        preference_id=preference.preference_id,
    )

  # --- Pure helpers ---

  def _build_order(
      self,
      customer_record: CustomerRecord,
      customer: CustomerInfo,
      payment_method: PaymentMethod,
      priced: PricedCart,
      metadata: Optional[FulfillmentMetadata],
  ) -> Order:
    return Order(
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        payment_method=payment_method,
        customer_id=customer_record.id,
        customer_snapshot=CustomerSnapshot(
            name=customer.name.strip(),
            email=customer.email.strip(),
            phone=customer.phone or None,
        ),
        items=priced.line_items,
        total_amount=priced.total_amount,
        metadata=metadata,
    )

  def _preference_request(self, order: Order) -> PreferenceRequest:
    snapshot = order.customer_snapshot
    items = []
    for li in order.items:
      if li.unit_price * li.quantity == li.total:
        items.append(
            PreferenceItem(
                title=li.name, unit_price=li.unit_price, quantity=li.quantity
            )
        )
      else:
        # Quantity-inclusive lines are charged once at their total.
        items.append(
            PreferenceItem(title=li.name, unit_price=li.total, quantity=1)
        )
    return PreferenceRequest(
        items=items,
        payer=Payer(
            email=snapshot.email, name=snapshot.name, phone=snapshot.phone
        ),
        order_id=order.id,
        sede=order.metadata.sede if order.metadata else None,
    )

  def _pickup_location(self, metadata: Optional[FulfillmentMetadata]) -> str:
    if metadata and metadata.pickup_locations:
      return "; ".join(metadata.pickup_locations)
    if metadata and metadata.sede:
      return sites.SITES[metadata.sede].formatted()
    return "; ".join(sites.all_formatted_locations())

  def _pickup_instructions(self, order: Order) -> PickupInstructionsResponse:
    hours = self.pickup_reservation_hours
    if order.payment_method == PaymentMethod.CASH:
      instruction_type = InstructionType.CASH_PICKUP
      message = (
          "Pay in cash when you pick up your order at the store. The order"
          f" stays reserved for {hours} hours."
      )
    else:
      instruction_type = InstructionType.TRANSFER_PICKUP
      message = (
          "Make the bank transfer and then pick up your order at the store."
          f" The order stays reserved for {hours} hours."
      )

    return PickupInstructionsResponse(
        order_id=order.id,
        order=OrderSummary(
            id=order.id,
            total_amount=order.total_amount,
            payment_method=order.payment_method,
            instructions=PickupInstructions(
                type=instruction_type,
                message=message,
                pickup_location=self._pickup_location(order.metadata),
            ),
        ),
    )
