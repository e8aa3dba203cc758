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

"""Tests for fulfillment inference."""

from decimal import Decimal
from typing import Dict, List

from absl.testing import absltest
from checkout_engine.enums import ItemType
from checkout_engine.enums import OrderType
from checkout_engine.enums import Sede
from checkout_engine.models import OrderLineItem
from checkout_engine.models import ProductRecord
from checkout_engine.services.fulfillment_service import FulfillmentRule
from checkout_engine.services.fulfillment_service import FulfillmentService
from checkout_engine.services.fulfillment_service import FulfillmentSignals
from checkout_engine.services.fulfillment_service import GiftKeywordRule
from checkout_engine.services.fulfillment_service import PickupTextRule
from checkout_engine.services.fulfillment_service import resolve_canonical_sede
from checkout_engine.services.fulfillment_service import SiteAffinityRule


def _line(product_id: str) -> OrderLineItem:
  return OrderLineItem(
      type=ItemType.PRODUCT,
      product_id=product_id,
      name=product_id,
      quantity=1,
      unit_price=Decimal("10"),
      total=Decimal("10"),
  )


def _course_line(course_id: str) -> OrderLineItem:
  return OrderLineItem(
      type=ItemType.ONLINE_COURSE,
      course_id=course_id,
      name=course_id,
      quantity=1,
      unit_price=Decimal("0"),
      total=Decimal("0"),
  )


def _catalog(*products: ProductRecord) -> Dict[str, ProductRecord]:
  return {p.id: p for p in products}


def _lines(products: Dict[str, ProductRecord]) -> List[OrderLineItem]:
  return [_line(product_id) for product_id in products]


class FulfillmentRulesTest(absltest.TestCase):
  """Each rule in isolation."""

  def test_gift_keyword_rule(self):
    signals = FulfillmentSignals()
    GiftKeywordRule().apply(
        ProductRecord(id="g", name="Gift Card $5000"), signals
    )
    self.assertTrue(signals.has_gifts)

    signals = FulfillmentSignals()
    GiftKeywordRule().apply(
        ProductRecord(id="r", name="Tarjeta REGALO"), signals
    )
    self.assertTrue(signals.has_gifts)

    signals = FulfillmentSignals()
    GiftKeywordRule().apply(ProductRecord(id="t", name="Tijera"), signals)
    self.assertFalse(signals.has_gifts)

  def test_site_affinity_rule(self):
    signals = FulfillmentSignals()
    SiteAffinityRule().apply(
        ProductRecord(
            id="c",
            name="Curso de costura",
            sede="Almagro",
            location_text="  Aula 2  ",
        ),
        signals,
    )
    self.assertEqual(signals.order_type, OrderType.PRESENTIAL_COURSE)
    self.assertEqual(signals.sites, [Sede.ALMAGRO])
    self.assertEqual(list(signals.pickup_locations), ["Aula 2"])
    self.assertFalse(signals.has_products_with_pickup)

  def test_site_affinity_rule_ignores_unrecognized_sites(self):
    for sede in ("online", "mixto", None):
      signals = FulfillmentSignals()
      SiteAffinityRule().apply(
          ProductRecord(id="c", name="Curso", sede=sede), signals
      )
      self.assertIsNone(signals.order_type)
      self.assertEqual(signals.sites, [])

  def test_pickup_text_rule_infers_site_from_text(self):
    signals = FulfillmentSignals()
    PickupTextRule().apply(
        ProductRecord(
            id="p",
            name="Maniquí",
            sede="mixto",
            location_text="Retiro en Ciudad Jardin",
        ),
        signals,
    )
    self.assertTrue(signals.has_products_with_pickup)
    self.assertEqual(signals.sites, [Sede.CIUDAD_JARDIN])
    self.assertEqual(
        list(signals.pickup_locations), ["Retiro en Ciudad Jardin"]
    )

  def test_pickup_text_rule_skips_records_with_recognized_site(self):
    signals = FulfillmentSignals()
    PickupTextRule().apply(
        ProductRecord(
            id="p", name="Curso", sede="almagro", location_text="Almagro"
        ),
        signals,
    )
    self.assertFalse(signals.has_products_with_pickup)
    self.assertEqual(signals.pickup_locations, {})

  def test_affinity_sites_take_priority_over_text_sites(self):
    signals = FulfillmentSignals()
    signals.text_sites[Sede.ALMAGRO] = None
    signals.affinity_sites[Sede.CIUDAD_JARDIN] = None
    self.assertEqual(signals.sites, [Sede.CIUDAD_JARDIN, Sede.ALMAGRO])

  def test_rule_base_requires_apply(self):
    with self.assertRaises(TypeError):
      FulfillmentRule()

    class NoApplyRule(FulfillmentRule):
      kind = "no_apply"
      priority = 99

    with self.assertRaises(TypeError):
      NoApplyRule()

  def test_resolve_canonical_sede(self):
    self.assertEqual(
        resolve_canonical_sede([Sede.ALMAGRO], Sede.CIUDAD_JARDIN),
        Sede.ALMAGRO,
    )
    self.assertEqual(
        resolve_canonical_sede(
            [Sede.ALMAGRO, Sede.CIUDAD_JARDIN], Sede.CIUDAD_JARDIN
        ),
        Sede.CIUDAD_JARDIN,
    )
    self.assertEqual(
        resolve_canonical_sede([Sede.CIUDAD_JARDIN, Sede.ALMAGRO], None),
        Sede.CIUDAD_JARDIN,
    )
    self.assertIsNone(resolve_canonical_sede([], None))


class FulfillmentServiceTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.service = FulfillmentService()

  def test_rules_run_in_priority_order(self):
    service = FulfillmentService(
        rules=[PickupTextRule(), GiftKeywordRule(), SiteAffinityRule()]
    )
    self.assertEqual(
        [rule.kind for rule in service.rules],
        ["gift_keyword", "site_affinity", "pickup_text"],
    )

  def test_single_site_affinity(self):
    products = _catalog(
        ProductRecord(id="P2", name="Curso de moldería", sede="almagro")
    )
    metadata = self.service.resolve(_lines(products), products)

    self.assertEqual(metadata.order_type, OrderType.PRESENTIAL_COURSE)
    self.assertEqual(metadata.sede, Sede.ALMAGRO)
    self.assertEqual(metadata.pickup_locations, [])
    self.assertFalse(metadata.has_gifts)
    self.assertFalse(metadata.has_products_with_pickup)

  def test_gift_only(self):
    products = _catalog(ProductRecord(id="P3", name="Gift Card"))
    metadata = self.service.resolve(_lines(products), products)

    self.assertTrue(metadata.has_gifts)
    self.assertIsNone(metadata.order_type)
    self.assertIsNone(metadata.sede)

  def test_gift_only_uses_sede_hint(self):
    products = _catalog(ProductRecord(id="P3", name="Gift Card"))
    metadata = self.service.resolve(
        _lines(products), products, sede_hint="ciudad-jardin"
    )
    self.assertEqual(metadata.sede, Sede.CIUDAD_JARDIN)

  def test_online_course_suppresses_metadata(self):
    products = _catalog(
        ProductRecord(id="P1", name="Curso", sede="almagro"),
    )
    line_items = [_course_line("C1"), _line("P1")]
    self.assertIsNone(self.service.resolve(line_items, products))

  def test_no_signals_means_no_metadata(self):
    products = _catalog(ProductRecord(id="P1", name="Tijera"))
    self.assertIsNone(self.service.resolve(_lines(products), products))

  def test_conflicting_sites_use_hint_then_first_seen(self):
    products = _catalog(
        ProductRecord(id="A", name="Curso A", sede="ciudad-jardin"),
        ProductRecord(id="B", name="Curso B", sede="almagro"),
    )
    line_items = _lines(products)

    first_seen = self.service.resolve(line_items, products)
    hinted = self.service.resolve(line_items, products, sede_hint="almagro")
    invalid_hint = self.service.resolve(
        line_items, products, sede_hint="online"
    )

    self.assertEqual(first_seen.sede, Sede.CIUDAD_JARDIN)
    self.assertEqual(hinted.sede, Sede.ALMAGRO)
    self.assertEqual(invalid_hint.sede, Sede.CIUDAD_JARDIN)

  def test_text_inference_is_lower_priority_than_affinity(self):
    products = _catalog(
        ProductRecord(
            id="T", name="Maniquí", location_text="Retirar en Almagro"
        ),
        ProductRecord(id="C", name="Curso", sede="ciudad-jardin"),
    )
    metadata = self.service.resolve(_lines(products), products)

    self.assertEqual(metadata.sede, Sede.CIUDAD_JARDIN)
    self.assertTrue(metadata.has_products_with_pickup)
    self.assertEqual(metadata.pickup_locations, ["Retirar en Almagro"])

  def test_pickup_text_without_course_resolves_sede(self):
    products = _catalog(
        ProductRecord(
            id="T",
            name="Maniquí",
            location_text="Shopping Paradise, Ciudad Jardín",
        ),
    )
    metadata = self.service.resolve(_lines(products), products)

    self.assertIsNone(metadata.order_type)
    self.assertEqual(metadata.sede, Sede.CIUDAD_JARDIN)
    self.assertTrue(metadata.has_products_with_pickup)

  def test_order_type_hint_is_never_applied(self):
    products = _catalog(ProductRecord(id="P1", name="Gift Card"))
    with self.assertLogs(
        "checkout_engine.services.fulfillment_service", level="INFO"
    ):
      metadata = self.service.resolve(
          _lines(products), products, order_type_hint="curso_presencial"
      )
    self.assertIsNone(metadata.order_type)

  def test_resolution_is_idempotent(self):
    products = _catalog(
        ProductRecord(
            id="A", name="Curso A", sede="almagro", location_text="Aula 1"
        ),
        ProductRecord(id="B", name="Regalo", location_text="Ciudad Jardín"),
        ProductRecord(id="C", name="Curso C", sede="ciudad-jardin"),
    )
    line_items = _lines(products)
    first = self.service.resolve(line_items, products, sede_hint="almagro")
    second = self.service.resolve(line_items, products, sede_hint="almagro")

    self.assertEqual(first.model_dump_json(), second.model_dump_json())
    self.assertEqual(first.pickup_locations, ["Aula 1", "Ciudad Jardín"])


if __name__ == "__main__":
  absltest.main()
