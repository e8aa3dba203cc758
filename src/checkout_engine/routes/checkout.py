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

"""Checkout route for the checkout server."""

from checkout_engine import dependencies
from checkout_engine.models import CheckoutRequest
from checkout_engine.models import CheckoutResponse
from checkout_engine.services.checkout_service import CheckoutService
from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends

router = APIRouter()


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    operation_id="checkout",
)
async def checkout(
    checkout_req: CheckoutRequest = Body(...),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> CheckoutResponse:
  """Turn a cart submission into an order and its payment hand-off."""
  return await checkout_service.checkout(checkout_req)
