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

"""Custom exceptions for the checkout engine."""

from typing import Any, Dict, Optional


class CheckoutError(Exception):
  """Base class for all checkout exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)

  def to_payload(self) -> Dict[str, Any]:
    """Returns the JSON body reported to the caller."""
    return {"detail": self.message, "code": self.code}


class InvalidCheckoutRequestError(CheckoutError):
  """Raised when the request is invalid (missing fields, unknown method)."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_CHECKOUT_REQUEST", status_code=400)


class CartEmptyAfterResolutionError(CheckoutError):
  """Raised when no requested item could be resolved against the catalog."""

  def __init__(self, message: str):
    super().__init__(
        message, code="CART_EMPTY_AFTER_RESOLUTION", status_code=400
    )


class PreferenceCreationFailedError(CheckoutError):
  """Raised when the payment preference could not be created or attached.

  The order has already been recorded in `pending/pending` state when this is
  raised, so the order id is reported back to the caller.
  """

  def __init__(self, message: str, order_id: str):
    super().__init__(
        message, code="PREFERENCE_CREATION_FAILED", status_code=502
    )
    self.order_id = order_id

  def to_payload(self) -> Dict[str, Any]:
    payload = super().to_payload()
    payload["order_id"] = self.order_id
    return payload


class ResourceNotFoundError(CheckoutError):
  """Raised when a requested resource is not found."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class OrderNotRetryableError(CheckoutError):
  """Raised when a payment preference retry targets an ineligible order."""

  def __init__(self, message: str):
    super().__init__(message, code="ORDER_NOT_RETRYABLE", status_code=409)


class PaymentProviderError(Exception):
  """Raised by payment-preference providers when the provider call fails."""

  def __init__(self, message: str, status_code: Optional[int] = None):
    self.message = message
    self.status_code = status_code
    super().__init__(self.message)
