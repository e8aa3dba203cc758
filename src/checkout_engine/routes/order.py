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

"""Order routes for the checkout server."""

from checkout_engine import dependencies
from checkout_engine.models import Order
from checkout_engine.models import PaymentRedirectResponse
from checkout_engine.services.checkout_service import CheckoutService
from fastapi import APIRouter
from fastapi import Depends
from fastapi import Path

router = APIRouter()


@router.get(
    "/orders/{id}",
    response_model=Order,
    operation_id="get_order",
)
async def get_order(
    order_id: str = Path(..., alias="id"),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Order:
  """Get an order by ID."""
  return await checkout_service.get_order(order_id)


@router.post(
    "/orders/{id}/payment-preference",
    response_model=PaymentRedirectResponse,
    operation_id="retry_payment_preference",
)
async def retry_payment_preference(
    order_id: str = Path(..., alias="id"),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> PaymentRedirectResponse:
  """Create the payment preference of an order left without one."""
  return await checkout_service.retry_payment_preference(order_id)
