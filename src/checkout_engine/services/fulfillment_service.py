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

"""Fulfillment service for inferring how and where an order is fulfilled.

The catalog has no single normalized fulfillment field, so this module infers
the order type, the canonical pickup site, the pickup locations and the gift
and pickup flags from per-product metadata (site affinity, free-text location
and product name).

Inference is expressed as an ordered list of rules. Each rule inspects one
product record and contributes signals to a shared accumulator:

1. `GiftKeywordRule`: a gift keyword in the name marks the order as
   containing gifts.
2. `SiteAffinityRule`: a recognized site affinity makes the order a
   presential course at that site.
3. `PickupTextRule`: free-text pickup locations on products without a
   recognized site mark the order as having pickup products, and the text is
   scanned for site names as a lower-priority site source.

Orders with any online course are never given fulfillment metadata.
"""

import abc
import dataclasses
import logging
from typing import ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

from checkout_engine import sites
from checkout_engine.enums import ItemType
from checkout_engine.enums import OrderType
from checkout_engine.enums import Sede
from checkout_engine.models import FulfillmentMetadata
from checkout_engine.models import OrderLineItem
from checkout_engine.models import ProductRecord

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class FulfillmentSignals:
  """Accumulates the signals found across an order's products.

  Sets are kept as insertion-ordered dicts so results are deterministic.
  """

  order_type: Optional[OrderType] = None
  affinity_sites: Dict[Sede, None] = dataclasses.field(default_factory=dict)
  text_sites: Dict[Sede, None] = dataclasses.field(default_factory=dict)
  pickup_locations: Dict[str, None] = dataclasses.field(default_factory=dict)
  has_gifts: bool = False
  has_products_with_pickup: bool = False

  @property
  def sites(self) -> List[Sede]:
    """Accumulated sites: affinity-derived first, then text-derived."""
    merged = dict(self.affinity_sites)
    for sede in self.text_sites:
      merged.setdefault(sede, None)
    return list(merged)


class FulfillmentRule(abc.ABC):
  """A single inference rule. Lower priorities run first."""

  kind: ClassVar[str]
  priority: ClassVar[int]

  @abc.abstractmethod
  def apply(self, product: ProductRecord, signals: FulfillmentSignals) -> None:
    """Adds the signals this rule reads from `product`."""


@dataclasses.dataclass(frozen=True)
class GiftKeywordRule(FulfillmentRule):
  kind: ClassVar[str] = "gift_keyword"
  priority: ClassVar[int] = 10

  keywords: Tuple[str, ...] = ("gift", "regalo")

  def apply(self, product: ProductRecord, signals: FulfillmentSignals) -> None:
    name = product.name.lower()
    if any(keyword in name for keyword in self.keywords):
      signals.has_gifts = True


@dataclasses.dataclass(frozen=True)
class SiteAffinityRule(FulfillmentRule):
  kind: ClassVar[str] = "site_affinity"
  priority: ClassVar[int] = 20

  def apply(self, product: ProductRecord, signals: FulfillmentSignals) -> None:
    sede = sites.parse_sede(product.sede)
    if sede is None:
      return
    signals.order_type = OrderType.PRESENTIAL_COURSE
    signals.affinity_sites.setdefault(sede, None)
    location = (product.location_text or "").strip()
    if location:
      signals.pickup_locations.setdefault(location, None)


@dataclasses.dataclass(frozen=True)
class PickupTextRule(FulfillmentRule):
  kind: ClassVar[str] = "pickup_text"
  priority: ClassVar[int] = 30

  def apply(self, product: ProductRecord, signals: FulfillmentSignals) -> None:
    if sites.parse_sede(product.sede) is not None:
      return
    location = (product.location_text or "").strip()
    if not location:
      return
    signals.has_products_with_pickup = True
    signals.pickup_locations.setdefault(location, None)
    for sede in sites.sites_mentioned_in(location):
      signals.text_sites.setdefault(sede, None)


DEFAULT_RULES: Tuple[FulfillmentRule, ...] = (
    GiftKeywordRule(),
    SiteAffinityRule(),
    PickupTextRule(),
)


def resolve_canonical_sede(
    accumulated: Sequence[Sede], hint: Optional[Sede]
) -> Optional[Sede]:
  """Picks one site: the only one, else the caller's hint, else the first."""
  if len(accumulated) == 1:
    return accumulated[0]
  if hint is not None:
    return hint
  return accumulated[0] if accumulated else None


class FulfillmentService:
  """Service for handling fulfillment logic."""

  def __init__(self, rules: Sequence[FulfillmentRule] = DEFAULT_RULES):
    self.rules = sorted(rules, key=lambda rule: rule.priority)

  def collect_signals(
      self, products: Sequence[ProductRecord]
  ) -> FulfillmentSignals:
    """Runs every rule over every product, in order."""
    signals = FulfillmentSignals()
    for product in products:
      for rule in self.rules:
        rule.apply(product, signals)
    return signals

  def resolve(
      self,
      line_items: Sequence[OrderLineItem],
      products: Mapping[str, ProductRecord],
      sede_hint: Optional[str] = None,
      order_type_hint: Optional[str] = None,
  ) -> Optional[FulfillmentMetadata]:
    """Infers the fulfillment metadata for an order.

    Args:
      line_items: The order's priced line items.
      products: Resolved product records keyed by id.
      sede_hint: Caller-supplied site, used only to break ties between
        several accumulated sites.
      order_type_hint: Caller-supplied order type. It is never applied;
        disagreement with the catalog is only logged.

    Returns:
      The metadata, or None when nothing was inferred or the order contains
      an online course.
    """
    if any(li.type == ItemType.ONLINE_COURSE for li in line_items):
      return None

    order_products = [
        products[li.product_id]
        for li in line_items
        if li.product_id in products
    ]
    signals = self.collect_signals(order_products)

    sede = None
    if signals.order_type or (
        signals.has_products_with_pickup or signals.has_gifts
    ):
      sede = resolve_canonical_sede(
          signals.sites, sites.parse_sede(sede_hint)
      )

    derived_type = signals.order_type.value if signals.order_type else None
    if order_type_hint and order_type_hint != derived_type:
      logger.info(
          "Ignoring order type hint %r; catalog implies %r",
          order_type_hint,
          derived_type,
      )

    metadata = FulfillmentMetadata(
        order_type=signals.order_type,
        sede=sede,
        pickup_locations=list(signals.pickup_locations),
        has_gifts=signals.has_gifts,
        has_products_with_pickup=signals.has_products_with_pickup,
    )
    if metadata.is_empty():
      return None
    return metadata
