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

"""Pricing service for turning requested items into priced line items.

Physical items have two price tiers: one for cash payments and one for every
other method. Each tier falls back to the base price and then to the legacy
single price field. Online courses carry no price in the catalog yet and are
priced at zero.
"""

import dataclasses
from decimal import Decimal
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from checkout_engine.enums import ItemType
from checkout_engine.enums import PaymentMethod
from checkout_engine.exceptions import CartEmptyAfterResolutionError
from checkout_engine.models import CheckoutItem
from checkout_engine.models import OrderLineItem
from checkout_engine.models import ProductRecord
from checkout_engine.services.catalog_loader import ResolvedCatalog

logger = logging.getLogger(__name__)

ZERO = Decimal(0)

# (category, unit) pairs whose catalog price already covers the requested
# quantity, e.g. a pack sold as one price regardless of how many units it
# contains.
QUANTITY_INCLUSIVE_UNITS: Dict[Tuple[str, str], bool] = {
    ("insumos", "pack"): True,
    ("telas", "corte"): True,
}


def _normalize(value: Optional[str]) -> str:
  return (value or "").strip().lower()


def parse_unit_pairs(values: Iterable[str]) -> Dict[Tuple[str, str], bool]:
  """Parses `category:unit` strings into quantity-inclusive table entries.

  Raises:
    ValueError: if an entry is not of the form `category:unit`.
  """
  table = {}
  for value in values:
    category, sep, unit = value.partition(":")
    if not sep or not category.strip() or not unit.strip():
      raise ValueError(f"Expected 'category:unit', got {value!r}")
    table[(_normalize(category), _normalize(unit))] = True
  return table


@dataclasses.dataclass
class PricedCart:
  line_items: List[OrderLineItem]
  total_amount: Decimal


class PricingService:
  """Service for handling pricing logic."""

  def __init__(
      self,
      quantity_inclusive_units: Optional[Dict[Tuple[str, str], bool]] = None,
  ):
    self.quantity_inclusive_units = dict(QUANTITY_INCLUSIVE_UNITS)
    if quantity_inclusive_units:
      self.quantity_inclusive_units.update(quantity_inclusive_units)

  def unit_price(
      self, product: ProductRecord, payment_method: PaymentMethod
  ) -> Decimal:
    """Returns the tier price of `product` for `payment_method`."""
    if payment_method == PaymentMethod.CASH:
      tier = product.cash_price
    else:
      tier = product.other_methods_price
    for candidate in (tier, product.base_price, product.price):
      if candidate is not None:
        return Decimal(candidate)
    return ZERO

  def price_includes_quantity(self, product: ProductRecord) -> bool:
    key = (_normalize(product.category), _normalize(product.unit))
    return self.quantity_inclusive_units.get(key, False)

  def price_product(
      self,
      item: CheckoutItem,
      product: ProductRecord,
      payment_method: PaymentMethod,
  ) -> OrderLineItem:
    unit_price = self.unit_price(product, payment_method)
    if self.price_includes_quantity(product):
      total = unit_price
    else:
      total = unit_price * item.quantity

    image_url = product.images[0] if product.images else product.src_url
    return OrderLineItem(
        type=ItemType.PRODUCT,
        product_id=product.id,
        name=product.name,
        quantity=item.quantity,
        unit_price=unit_price,
        total=total,
        image_url=image_url or None,
    )

  def price_items(
      self,
      items: Sequence[CheckoutItem],
      catalog: ResolvedCatalog,
      payment_method: PaymentMethod,
  ) -> PricedCart:
    """Prices every resolvable item, in request order.

    Args:
      items: The requested items.
      catalog: Catalog records resolved for these items.
      payment_method: The chosen payment method; it selects the price tier.

    Returns:
      The priced line items and their running total.

    Raises:
      CartEmptyAfterResolutionError: if no item could be resolved.
    """
    line_items: List[OrderLineItem] = []
    total_amount = ZERO

    for item in items:
      if item.type == ItemType.PRODUCT.value:
        product = catalog.products.get(item.id)
        if not product:
          logger.warning("Product %s not found, skipping", item.id)
          continue
        line = self.price_product(item, product, payment_method)
      else:
        course = catalog.courses.get(item.id)
        if not course:
          logger.warning("Online course %s not found, skipping", item.id)
          continue
        # Courses have no price field in the catalog yet.
        line = OrderLineItem(
            type=ItemType.ONLINE_COURSE,
            course_id=course.id,
            name=course.title,
            quantity=item.quantity,
            unit_price=ZERO,
            total=ZERO,
        )

      line_items.append(line)
      total_amount += line.total

    if not line_items:
      raise CartEmptyAfterResolutionError(
          "None of the requested items could be found in the catalog"
      )
    return PricedCart(line_items=line_items, total_amount=total_amount)
