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

"""Database management and persistence layer for the checkout engine.

This module provides the schema definitions, database session management, and
asynchronous data access helpers used by the store adapters. It utilizes
SQLAlchemy with SQLite (via aiosqlite).

Key features include:
- `DatabaseManager`: Handles asynchronous engine initialization and session
  factory setup.
- WAL Mode: Automatically enables SQLite Write-Ahead Logging so that the
  server and the inspection tools can read concurrently.
- Declarative Models: Defines tables for the product and online-course
  catalog, customers and orders.
- Data Access Helpers: A suite of asynchronous functions for CRUD operations
  on the database models.
"""

import datetime
import logging
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
import uuid

from sqlalchemy import Column
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import Numeric
from sqlalchemy import select
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseManager:
  """Manages the database engine and sessions without using global variables."""

  def __init__(self) -> None:
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[sessionmaker] = None

  async def init_db(self, database_path: str) -> None:
    """Initializes the database engine and creates tables."""
    url = f"sqlite+aiosqlite:///{database_path}"
    self.engine = create_async_engine(url, echo=False)

    async with self.engine.connect() as conn:
      await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized at %s", database_path)

  async def close(self) -> None:
    """Closes the database engine."""
    if self.engine:
      await self.engine.dispose()


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


class Product(Base):
  __tablename__ = "products"

  id = Column(String, primary_key=True)
  name = Column(String)
  category = Column(String, nullable=True)
  unit = Column(String, nullable=True)
  sede = Column(String, nullable=True)
  location_text = Column(String, nullable=True)
  cash_price = Column(Numeric(12, 2), nullable=True)
  other_methods_price = Column(Numeric(12, 2), nullable=True)
  base_price = Column(Numeric(12, 2), nullable=True)
  price = Column(Numeric(12, 2), nullable=True)  # Legacy single price
  images = Column(JSON, nullable=True)  # List of image URLs
  src_url = Column(String, nullable=True)


class OnlineCourse(Base):
  __tablename__ = "online_courses"

  id = Column(String, primary_key=True)
  title = Column(String)


class Customer(Base):
  __tablename__ = "customers"

  id = Column(String, primary_key=True)
  email = Column(String, index=True, unique=True)
  name = Column(String)
  phone = Column(String, nullable=True)
  total_orders = Column(Integer, default=0)
  total_spent = Column(Numeric(12, 2), default=0)
  created_at = Column(String)
  updated_at = Column(String)


class Order(Base):
  __tablename__ = "orders"

  id = Column(String, primary_key=True)
  status = Column(String)
  payment_status = Column(String)
  payment_method = Column(String)
  mp_preference_id = Column(String, nullable=True)
  created_at = Column(String)
  updated_at = Column(String)
  # SQLAlchemy JSON type handles serialization automatically
  data = Column(JSON)


# Columns mirrored out of the JSON document so they can be queried.
_ORDER_INDEXED_FIELDS = (
    "status",
    "payment_status",
    "payment_method",
    "mp_preference_id",
)


def _now() -> str:
  return datetime.datetime.now(datetime.timezone.utc).isoformat()


def normalize_email(email: str) -> str:
  return email.strip().lower()


# --- Data Access Helpers ---


async def get_products_by_ids(
    session: AsyncSession, product_ids: List[str]
) -> List[Product]:
  """Retrieves multiple products by their IDs in a single query.

  Args:
    session: The database session to use.
    product_ids: A list of product IDs to look up.

  Returns:
    A list of matching Product objects. Unknown IDs are simply absent.
  """
  if not product_ids:
    return []
  result = await session.execute(
      select(Product).where(Product.id.in_(product_ids))
  )
  return list(result.scalars().all())


async def get_online_course(
    session: AsyncSession, course_id: str
) -> Optional[OnlineCourse]:
  """Retrieves an online course by ID."""
  return await session.get(OnlineCourse, course_id)


async def get_customer_by_email(
    session: AsyncSession, email: str
) -> Optional[Customer]:
  """Retrieves a customer by normalized email."""
  result = await session.execute(
      select(Customer).where(Customer.email == normalize_email(email))
  )
  return result.scalar_one_or_none()


async def upsert_customer(
    session: AsyncSession, email: str, name: str, phone: Optional[str] = None
) -> Customer:
  """Creates a customer or refreshes the contact data of an existing one.

  Order statistics are never touched here; they belong to the payment
  confirmation flow.

  Args:
    session: The database session.
    email: The customer's email, matched case-insensitively.
    name: The customer's name.
    phone: Optional phone number. An absent phone keeps the stored one.

  Returns:
    The created or updated Customer.
  """
  now = _now()
  # A single INSERT .. ON CONFLICT keeps concurrent first checkouts with the
  # same email from racing on the unique index.
  stmt = sqlite_insert(Customer).values(
      id=str(uuid.uuid4()),
      email=normalize_email(email),
      name=name,
      phone=phone,
      total_orders=0,
      total_spent=0,
      created_at=now,
      updated_at=now,
  )
  refreshed = {
      "name": stmt.excluded.name,
      "updated_at": stmt.excluded.updated_at,
  }
  if phone:
    refreshed["phone"] = stmt.excluded.phone
  await session.execute(
      stmt.on_conflict_do_update(
          index_elements=[Customer.email], set_=refreshed
      )
  )

  result = await session.execute(
      select(Customer)
      .where(Customer.email == normalize_email(email))
      .execution_options(populate_existing=True)
  )
  return result.scalar_one()


async def create_order(
    session: AsyncSession, order_obj: Dict[str, Any]
) -> Dict[str, Any]:
  """Creates a new order with a fresh ID and timestamps.

  Args:
    session: The database session.
    order_obj: The JSON-able order document, without id or timestamps.

  Returns:
    The stored document, including `id`, `created_at` and `updated_at`.
  """
  now = _now()
  order_id = str(uuid.uuid4())
  data = dict(order_obj, id=order_id, created_at=now, updated_at=now)
  new_order = Order(
      id=order_id,
      created_at=now,
      updated_at=now,
      data=data,
      **{field: data.get(field) for field in _ORDER_INDEXED_FIELDS},
  )
  session.add(new_order)
  return data


async def get_order(
    session: AsyncSession, order_id: str
) -> Optional[Dict[str, Any]]:
  """Retrieves an order by ID."""
  result = await session.get(Order, order_id)
  if result:
    return result.data
  return None


async def update_order(
    session: AsyncSession, order_id: str, updates: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
  """Merges `updates` into an order and refreshes `updated_at`.

  Returns:
    The updated document, or None if the order does not exist.
  """
  existing = await session.get(Order, order_id)
  if not existing:
    return None
  now = _now()
  # Reassign so the JSON column change is tracked.
  data = {**existing.data, **updates, "updated_at": now}
  existing.data = data
  existing.updated_at = now
  for field in _ORDER_INDEXED_FIELDS:
    if field in updates:
      setattr(existing, field, updates[field])
  return data


async def list_orders(session: AsyncSession) -> List[Dict[str, Any]]:
  """Retrieves all orders, oldest first."""
  result = await session.execute(select(Order).order_by(Order.created_at))
  return [order.data for order in result.scalars().all()]


async def list_orders_missing_preference(
    session: AsyncSession,
) -> List[Dict[str, Any]]:
  """Retrieves pending gateway orders that never got a payment preference."""
  result = await session.execute(
      select(Order)
      .where(Order.payment_method == "mp")
      .where(Order.status == "pending")
      .where(Order.payment_status == "pending")
      .where(Order.mp_preference_id.is_(None))
      .order_by(Order.created_at)
  )
  return [order.data for order in result.scalars().all()]
