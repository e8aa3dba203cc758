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

"""Collaborator contracts used by the checkout pipeline and SQL adapters.

The checkout services only depend on the protocols declared here. The SQL
adapters open one session per call and commit their own writes: an order is
durable before any payment step runs, and independent reads can run
concurrently.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from checkout_engine import db
from checkout_engine.exceptions import ResourceNotFoundError
from checkout_engine.models import CustomerRecord
from checkout_engine.models import OnlineCourseRecord
from checkout_engine.models import Order
from checkout_engine.models import ProductRecord
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)


class CatalogReader(Protocol):

  async def fetch_products_by_ids(
      self, product_ids: Sequence[str]
  ) -> List[ProductRecord]:
    ...

  async def fetch_online_course_by_id(
      self, course_id: str
  ) -> Optional[OnlineCourseRecord]:
    ...


class CustomerStore(Protocol):

  async def upsert(
      self, email: str, name: str, phone: Optional[str] = None
  ) -> CustomerRecord:
    ...


class OrderStore(Protocol):
  """Order persistence. `create` assigns the id and timestamps."""

  async def create(self, order: Order) -> str:
    ...

  async def update(self, order_id: str, fields: Dict[str, Any]) -> None:
    ...

  async def get(self, order_id: str) -> Optional[Order]:
    ...


def order_to_document(order: Order) -> Dict[str, Any]:
  """Dumps an order to the JSON document stored by the order store."""
  return order.model_dump(
      mode="json",
      exclude={"id", "created_at", "updated_at"},
      exclude_none=True,
  )


def _product_to_record(product: db.Product) -> ProductRecord:
  return ProductRecord(
      id=product.id,
      name=product.name or "",
      category=product.category,
      unit=product.unit,
      sede=product.sede,
      location_text=product.location_text,
      cash_price=product.cash_price,
      other_methods_price=product.other_methods_price,
      base_price=product.base_price,
      price=product.price,
      images=product.images or [],
      src_url=product.src_url,
  )


class SqlCatalogReader:
  """Catalog reads backed by the products and online_courses tables."""

  def __init__(self, session_factory: sessionmaker):
    self._session_factory = session_factory

  async def fetch_products_by_ids(
      self, product_ids: Sequence[str]
  ) -> List[ProductRecord]:
    async with self._session_factory() as session:
      products = await db.get_products_by_ids(session, list(product_ids))
      return [_product_to_record(p) for p in products]

  async def fetch_online_course_by_id(
      self, course_id: str
  ) -> Optional[OnlineCourseRecord]:
    async with self._session_factory() as session:
      course = await db.get_online_course(session, course_id)
      if not course:
        return None
      return OnlineCourseRecord(id=course.id, title=course.title or "")


class SqlCustomerStore:

  def __init__(self, session_factory: sessionmaker):
    self._session_factory = session_factory

  async def upsert(
      self, email: str, name: str, phone: Optional[str] = None
  ) -> CustomerRecord:
    async with self._session_factory() as session:
      customer = await db.upsert_customer(session, email, name, phone)
      await session.commit()
      return CustomerRecord(
          id=customer.id,
          email=customer.email,
          name=customer.name,
          phone=customer.phone,
          total_orders=customer.total_orders or 0,
          total_spent=customer.total_spent or 0,
      )


class SqlOrderStore:

  def __init__(self, session_factory: sessionmaker):
    self._session_factory = session_factory

  async def create(self, order: Order) -> str:
    async with self._session_factory() as session:
      stored = await db.create_order(session, order_to_document(order))
      await session.commit()
    logger.info("Stored order %s", stored["id"])
    return stored["id"]

  async def update(self, order_id: str, fields: Dict[str, Any]) -> None:
    async with self._session_factory() as session:
      updated = await db.update_order(session, order_id, fields)
      if updated is None:
        raise ResourceNotFoundError(f"Order {order_id} not found")
      await session.commit()

  async def get(self, order_id: str) -> Optional[Order]:
    async with self._session_factory() as session:
      data = await db.get_order(session, order_id)
    if data is None:
      return None
    return Order.model_validate(data)

  async def list_pending_preferences(self) -> List[Order]:
    async with self._session_factory() as session:
      documents = await db.list_orders_missing_preference(session)
    return [Order.model_validate(d) for d in documents]
