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

"""Payment-preference providers.

A payment preference is the gateway-side checkout session the payer is
redirected to. The Mercado Pago provider talks to the REST API directly and
selects the receiving account from the order's site.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from checkout_engine.config import Settings
from checkout_engine.enums import Sede
from checkout_engine.exceptions import PaymentProviderError
from checkout_engine.models import PreferenceRequest
from checkout_engine.models import PreferenceResult
import httpx

logger = logging.getLogger(__name__)

PREFERENCES_PATH = "/checkout/preferences"


class PaymentPreferenceProvider(Protocol):

  async def create_preference(
      self, request: PreferenceRequest
  ) -> PreferenceResult:
    ...


class MercadoPagoPreferenceProvider:
  """Creates checkout preferences through the Mercado Pago REST API."""

  def __init__(
      self,
      settings: Settings,
      currency: str = "ARS",
      transport: Optional[httpx.AsyncBaseTransport] = None,
  ):
    self.settings = settings
    self.currency = currency
    self._transport = transport

  def access_token(self, sede: Optional[Sede]) -> Optional[str]:
    """Returns the token of the site's account, else the default token."""
    by_site = {
        Sede.ALMAGRO: self.settings.mp_access_token_almagro,
        Sede.CIUDAD_JARDIN: self.settings.mp_access_token_ciudad_jardin,
    }
    token = by_site.get(sede) if sede else None
    return token or self.settings.mp_access_token

  def build_body(self, request: PreferenceRequest) -> Dict[str, Any]:
    """Builds the preference payload sent to Mercado Pago."""
    base_url = self.settings.base_url.rstrip("/")
    payer: Dict[str, Any] = {"email": request.payer.email}
    if request.payer.name:
      payer["name"] = request.payer.name
    if request.payer.phone:
      payer["phone"] = {"number": request.payer.phone}

    return {
        "items": [
            {
                "id": f"item-{index}",
                "title": item.title,
                "unit_price": float(item.unit_price),
                "quantity": item.quantity,
                "currency_id": self.currency,
            }
            for index, item in enumerate(request.items, start=1)
        ],
        "payer": payer,
        "back_urls": {
            "success": f"{base_url}/checkout/success",
            "failure": f"{base_url}/checkout/failure",
            "pending": f"{base_url}/checkout/pending",
        },
        "notification_url": f"{base_url}/api/mercadopago/webhook",
        "metadata": {
            "order_id": request.order_id,
            "customer_email": request.payer.email,
            "sede": request.sede.value if request.sede else None,
        },
        "statement_descriptor": self.settings.mp_statement_descriptor,
        "external_reference": request.order_id,
        "auto_return": "approved",
    }

  async def create_preference(
      self, request: PreferenceRequest
  ) -> PreferenceResult:
    """Creates a preference for an order.

    Args:
      request: Items, payer, order id and site of the order.

    Returns:
      The preference id and the URL the payer must be sent to.

    Raises:
      PaymentProviderError: if no token is configured, the request fails, or
        the response lacks an id or payment URL.
    """
    token = self.access_token(request.sede)
    if not token:
      raise PaymentProviderError(
          f"Mercado Pago {self.settings.mp_environment} access token is not"
          " configured"
      )

    try:
      async with httpx.AsyncClient(
          base_url=self.settings.mp_api_url, transport=self._transport
      ) as client:
        response = await client.post(
            PREFERENCES_PATH,
            json=self.build_body(request),
            headers={
                "Authorization": f"Bearer {token}",
                # Retrying the same order yields the same preference.
                "X-Idempotency-Key": request.order_id,
            },
        )
    except httpx.RequestError as e:
      raise PaymentProviderError(
          f"Network error creating payment preference: {e}"
      ) from e

    if not response.is_success:
      logger.error(
          "Mercado Pago rejected preference for order %s: %d %s",
          request.order_id,
          response.status_code,
          response.text,
      )
      raise PaymentProviderError(
          f"Mercado Pago returned status {response.status_code}",
          status_code=response.status_code,
      )

    try:
      data = response.json()
    except ValueError as e:
      raise PaymentProviderError(
          "Mercado Pago returned an invalid JSON body"
      ) from e

    preference_id = data.get("id")
    if not preference_id:
      raise PaymentProviderError("Mercado Pago response has no preference id")

    if self.settings.is_production:
      init_point = data.get("init_point")
    else:
      init_point = data.get("sandbox_init_point") or data.get("init_point")
    if not init_point:
      raise PaymentProviderError("Mercado Pago response has no payment URL")

    return PreferenceResult(
        preference_id=str(preference_id),
        init_point=init_point,
        sandbox_init_point=data.get("sandbox_init_point"),
    )
