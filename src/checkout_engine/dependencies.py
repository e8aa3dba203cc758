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

"""FastAPI dependencies for the checkout server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Settings snapshot and database session factory.
- Collaborator adapters (catalog, customer and order stores, payment
  preference provider).
- Service instantiation (CatalogLoader, PricingService, FulfillmentService,
  CheckoutService).

Tests override `get_session_factory` and `get_payment_provider`.
"""

from checkout_engine import config
from checkout_engine import db
from checkout_engine.exceptions import CheckoutError
from checkout_engine.payments import MercadoPagoPreferenceProvider
from checkout_engine.payments import PaymentPreferenceProvider
from checkout_engine.services.catalog_loader import CatalogLoader
from checkout_engine.services.checkout_service import CheckoutService
from checkout_engine.services.fulfillment_service import FulfillmentService
from checkout_engine.services.pricing_service import parse_unit_pairs
from checkout_engine.services.pricing_service import PricingService
from checkout_engine.stores import CatalogReader
from checkout_engine.stores import CustomerStore
from checkout_engine.stores import OrderStore
from checkout_engine.stores import SqlCatalogReader
from checkout_engine.stores import SqlCustomerStore
from checkout_engine.stores import SqlOrderStore
from fastapi import Depends
from sqlalchemy.orm import sessionmaker


def get_settings() -> config.Settings:
  """Dependency provider for the settings snapshot."""
  return config.get_settings()


def get_session_factory() -> sessionmaker:
  """Dependency provider for the database session factory."""
  if db.manager.session_factory is None:
    raise CheckoutError("Database is not initialized")
  return db.manager.session_factory


def get_catalog_reader(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> CatalogReader:
  return SqlCatalogReader(session_factory)


def get_customer_store(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> CustomerStore:
  return SqlCustomerStore(session_factory)


def get_order_store(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> OrderStore:
  return SqlOrderStore(session_factory)


def get_payment_provider(
    settings: config.Settings = Depends(get_settings),
) -> PaymentPreferenceProvider:
  """Dependency provider for the payment preference provider."""
  return MercadoPagoPreferenceProvider(settings)


def get_pricing_service(
    settings: config.Settings = Depends(get_settings),
) -> PricingService:
  """Dependency provider for PricingService."""
  return PricingService(parse_unit_pairs(settings.quantity_inclusive_units))


def get_fulfillment_service() -> FulfillmentService:
  """Dependency provider for FulfillmentService."""
  return FulfillmentService()


def get_checkout_service(
    settings: config.Settings = Depends(get_settings),
    catalog: CatalogReader = Depends(get_catalog_reader),
    customers: CustomerStore = Depends(get_customer_store),
    orders: OrderStore = Depends(get_order_store),
    payment_provider: PaymentPreferenceProvider = Depends(
        get_payment_provider
    ),
    pricing_service: PricingService = Depends(get_pricing_service),
    fulfillment_service: FulfillmentService = Depends(
        get_fulfillment_service
    ),
) -> CheckoutService:
  """Dependency provider for CheckoutService."""
  return CheckoutService(
      catalog_loader=CatalogLoader(catalog),
      pricing_service=pricing_service,
      fulfillment_service=fulfillment_service,
      customers=customers,
      orders=orders,
      payment_provider=payment_provider,
      pickup_reservation_hours=settings.pickup_reservation_hours,
  )
