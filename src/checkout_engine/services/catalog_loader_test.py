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

"""Tests for the catalog batch loader."""

import asyncio
from typing import List, Optional, Sequence

from absl.testing import absltest
from checkout_engine.models import CheckoutItem
from checkout_engine.models import OnlineCourseRecord
from checkout_engine.models import ProductRecord
from checkout_engine.services.catalog_loader import CatalogLoader


class RecordingCatalog:
  """In-memory catalog that records every read."""

  def __init__(self):
    self.products = {
        "p1": ProductRecord(id="p1", name="Tijera"),
        "p2": ProductRecord(id="p2", name="Hilo"),
    }
    self.courses = {"c1": OnlineCourseRecord(id="c1", title="Moldería")}
    self.product_batches: List[List[str]] = []
    self.course_reads: List[str] = []

  async def fetch_products_by_ids(
      self, product_ids: Sequence[str]
  ) -> List[ProductRecord]:
    self.product_batches.append(list(product_ids))
    return [self.products[i] for i in product_ids if i in self.products]

  async def fetch_online_course_by_id(
      self, course_id: str
  ) -> Optional[OnlineCourseRecord]:
    self.course_reads.append(course_id)
    return self.courses.get(course_id)


class CatalogLoaderTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.catalog = RecordingCatalog()
    self.loader = CatalogLoader(self.catalog)

  def test_products_are_read_in_one_batch(self):
    items = [
        CheckoutItem(type="product", id="p2"),
        CheckoutItem(type="product", id="p1"),
        CheckoutItem(type="product", id="p2", quantity=3),
        CheckoutItem(type="product", id="ghost"),
        CheckoutItem(type="onlineCourse", id="c1"),
        CheckoutItem(type="onlineCourse", id="c1"),
        CheckoutItem(type="onlineCourse", id="c404"),
    ]

    resolved = asyncio.run(self.loader.load(items))

    self.assertEqual(self.catalog.product_batches, [["p2", "p1", "ghost"]])
    self.assertCountEqual(self.catalog.course_reads, ["c1", "c404"])
    self.assertEqual(set(resolved.products), {"p1", "p2"})
    self.assertEqual(set(resolved.courses), {"c1"})

  def test_no_reads_for_absent_partitions(self):
    resolved = asyncio.run(
        self.loader.load([CheckoutItem(type="onlineCourse", id="c1")])
    )

    self.assertEqual(self.catalog.product_batches, [])
    self.assertEqual(resolved.products, {})
    self.assertEqual(resolved.courses["c1"].title, "Moldería")


if __name__ == "__main__":
  absltest.main()
