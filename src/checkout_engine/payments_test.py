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

"""Tests for the Mercado Pago preference provider."""

import asyncio
from decimal import Decimal
import json
from typing import List

from absl.testing import absltest
from checkout_engine.config import Settings
from checkout_engine.enums import Sede
from checkout_engine.exceptions import PaymentProviderError
from checkout_engine.models import Payer
from checkout_engine.models import PreferenceItem
from checkout_engine.models import PreferenceRequest
from checkout_engine.payments import MercadoPagoPreferenceProvider
import httpx


def _preference_request(sede=Sede.ALMAGRO) -> PreferenceRequest:
  return PreferenceRequest(
      items=[
          PreferenceItem(
              title="Curso de moldería",
              unit_price=Decimal("5000.50"),
              quantity=1,
          ),
          PreferenceItem(title="Tijera", unit_price=Decimal("120"), quantity=2),
      ],
      payer=Payer(email="ana@example.com", name="Ana", phone="1155550000"),
      order_id="order-1",
      sede=sede,
  )


class MercadoPagoPreferenceProviderTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.settings = Settings(
        base_url="https://tienda.example/",
        mp_access_token="default-token",
        mp_access_token_almagro="almagro-token",
    )
    self.requests: List[httpx.Request] = []

  def _provider(self, handler, settings=None):
    def recording_handler(request: httpx.Request) -> httpx.Response:
      self.requests.append(request)
      return handler(request)

    return MercadoPagoPreferenceProvider(
        settings or self.settings,
        transport=httpx.MockTransport(recording_handler),
    )

  def test_creates_preference(self):
    provider = self._provider(
        lambda request: httpx.Response(
            201,
            json={
                "id": "pref-123",
                "init_point": "https://mp.example/live",
                "sandbox_init_point": "https://mp.example/sandbox",
            },
        )
    )

    result = asyncio.run(provider.create_preference(_preference_request()))

    self.assertEqual(result.preference_id, "pref-123")
    self.assertEqual(result.init_point, "https://mp.example/sandbox")

    request = self.requests[0]
    self.assertEqual(request.method, "POST")
    self.assertEqual(
        str(request.url), "https://api.mercadopago.com/checkout/preferences"
    )
    self.assertEqual(request.headers["Authorization"], "Bearer almagro-token")
    self.assertEqual(request.headers["X-Idempotency-Key"], "order-1")

    body = json.loads(request.content)
    self.assertEqual(
        body["items"][0],
        {
            "id": "item-1",
            "title": "Curso de moldería",
            "unit_price": 5000.5,
            "quantity": 1,
            "currency_id": "ARS",
        },
    )
    self.assertEqual(body["items"][1]["id"], "item-2")
    self.assertEqual(body["payer"]["phone"], {"number": "1155550000"})
    self.assertEqual(body["external_reference"], "order-1")
    self.assertEqual(
        body["notification_url"],
        "https://tienda.example/api/mercadopago/webhook",
    )
    self.assertEqual(
        body["back_urls"]["success"], "https://tienda.example/checkout/success"
    )
    self.assertEqual(body["metadata"]["sede"], "almagro")
    self.assertEqual(body["auto_return"], "approved")

  def test_production_uses_live_init_point(self):
    settings = self.settings.model_copy(
        update={"mp_environment": "production"}
    )
    provider = self._provider(
        lambda request: httpx.Response(
            201,
            json={
                "id": "pref-123",
                "init_point": "https://mp.example/live",
                "sandbox_init_point": "https://mp.example/sandbox",
            },
        ),
        settings=settings,
    )

    result = asyncio.run(provider.create_preference(_preference_request()))
    self.assertEqual(result.init_point, "https://mp.example/live")

  def test_access_token_falls_back_to_default(self):
    provider = MercadoPagoPreferenceProvider(self.settings)
    self.assertEqual(provider.access_token(Sede.ALMAGRO), "almagro-token")
    self.assertEqual(
        provider.access_token(Sede.CIUDAD_JARDIN), "default-token"
    )
    self.assertEqual(provider.access_token(None), "default-token")

  def test_missing_token(self):
    provider = self._provider(
        lambda request: httpx.Response(500),
        settings=Settings(),
    )
    with self.assertRaises(PaymentProviderError):
      asyncio.run(provider.create_preference(_preference_request(sede=None)))
    self.assertEqual(self.requests, [])

  def test_error_status(self):
    provider = self._provider(
        lambda request: httpx.Response(400, json={"message": "bad payer"})
    )
    with self.assertLogs("checkout_engine.payments", level="ERROR"):
      with self.assertRaises(PaymentProviderError) as cm:
        asyncio.run(provider.create_preference(_preference_request()))
    self.assertEqual(cm.exception.status_code, 400)

  def test_network_error(self):
    def handler(request):
      raise httpx.ConnectError("connection refused", request=request)

    provider = self._provider(handler)
    with self.assertRaises(PaymentProviderError):
      asyncio.run(provider.create_preference(_preference_request()))

  def test_response_without_id_or_url(self):
    for payload in ({"init_point": "https://mp.example/live"}, {"id": "x"}):
      provider = self._provider(
          lambda request, payload=payload: httpx.Response(201, json=payload)
      )
      with self.assertRaises(PaymentProviderError):
        asyncio.run(provider.create_preference(_preference_request()))


if __name__ == "__main__":
  absltest.main()
