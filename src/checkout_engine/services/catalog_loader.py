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

"""Batched catalog resolution for a cart.

Products are resolved with a single batched read; online courses are read by
id, concurrently, since the catalog only exposes single-id course reads.
"""

import asyncio
import dataclasses
import logging
from typing import Dict, List, Sequence

from checkout_engine.enums import ItemType
from checkout_engine.models import CheckoutItem
from checkout_engine.models import OnlineCourseRecord
from checkout_engine.models import ProductRecord
from checkout_engine.stores import CatalogReader

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ResolvedCatalog:
  """Catalog records keyed by id. Unknown ids are absent."""

  products: Dict[str, ProductRecord] = dataclasses.field(default_factory=dict)
  courses: Dict[str, OnlineCourseRecord] = dataclasses.field(
      default_factory=dict
  )


def _distinct_ids(
    items: Sequence[CheckoutItem], item_type: ItemType
) -> List[str]:
  # dict.fromkeys keeps first-seen order.
  return list(
      dict.fromkeys(item.id for item in items if item.type == item_type.value)
  )


class CatalogLoader:
  """Resolves the catalog records referenced by a cart."""

  def __init__(self, catalog: CatalogReader):
    self.catalog = catalog

  async def load(self, items: Sequence[CheckoutItem]) -> ResolvedCatalog:
    """Loads every product and course referenced by `items`.

    Args:
      items: The requested items, as submitted.

    Returns:
      A ResolvedCatalog. Ids missing from the catalog are dropped without
      error; the pricing step skips their line items.
    """
    product_ids = _distinct_ids(items, ItemType.PRODUCT)
    course_ids = _distinct_ids(items, ItemType.ONLINE_COURSE)

    resolved = ResolvedCatalog()
    if product_ids:
      products = await self.catalog.fetch_products_by_ids(product_ids)
      resolved.products = {p.id: p for p in products}

    if course_ids:
      courses = await asyncio.gather(
          *(self.catalog.fetch_online_course_by_id(cid) for cid in course_ids)
      )
      resolved.courses = {c.id: c for c in courses if c is not None}

    logger.info(
        "Resolved %d/%d products and %d/%d courses",
        len(resolved.products),
        len(product_ids),
        len(resolved.courses),
        len(course_ids),
    )
    return resolved
