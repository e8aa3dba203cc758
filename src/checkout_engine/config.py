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

"""Shared configuration and startup logic for the checkout server."""

import contextlib
from typing import List, Optional

from absl import flags
from checkout_engine import db
from fastapi import FastAPI
from pydantic import BaseModel

FLAGS = flags.FLAGS

# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string("database_path", None, "Path to the SQLite database")
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string(
      "base_url",
      "http://localhost:3000",
      "Public base URL used for payment return and notification URLs",
  )
  flags.DEFINE_enum(
      "mp_environment",
      "sandbox",
      ["sandbox", "production"],
      "Mercado Pago environment",
  )
  flags.DEFINE_string(
      "mp_api_url", "https://api.mercadopago.com", "Mercado Pago API base URL"
  )
  flags.DEFINE_string("mp_access_token", None, "Default Mercado Pago token")
  flags.DEFINE_string(
      "mp_access_token_almagro", None, "Mercado Pago token for Almagro"
  )
  flags.DEFINE_string(
      "mp_access_token_ciudad_jardin",
      None,
      "Mercado Pago token for Ciudad Jardín",
  )
  flags.DEFINE_string(
      "mp_statement_descriptor",
      "BAUL DE MODA",
      "Statement descriptor shown on the payer's card summary",
  )
  flags.DEFINE_integer(
      "pickup_reservation_hours",
      48,
      "Hours an unpaid cash/transfer order stays reserved for pickup",
  )
  flags.DEFINE_list(
      "quantity_inclusive_units",
      [],
      "Extra category:unit pairs whose catalog price already covers the"
      " requested quantity",
  )
except flags.DuplicateFlagError:
  pass


class Settings(BaseModel):
  """Snapshot of the flag values the engine reads at runtime."""

  database_path: Optional[str] = None
  port: Optional[int] = None
  base_url: str = "http://localhost:3000"
  mp_environment: str = "sandbox"
  mp_api_url: str = "https://api.mercadopago.com"
  mp_access_token: Optional[str] = None
  mp_access_token_almagro: Optional[str] = None
  mp_access_token_ciudad_jardin: Optional[str] = None
  mp_statement_descriptor: str = "BAUL DE MODA"
  pickup_reservation_hours: int = 48
  quantity_inclusive_units: List[str] = []

  @property
  def is_production(self) -> bool:
    return self.mp_environment == "production"


def get_settings() -> Settings:
  """Builds a Settings snapshot from the flags.

  When the engine is used as a library (or under a test runner that does not
  go through absl), flags are never parsed; their defaults are used instead.
  """
  if not FLAGS.is_parsed():
    FLAGS.mark_as_parsed()
  return Settings(
      database_path=FLAGS.database_path,
      port=FLAGS.port,
      base_url=FLAGS.base_url,
      mp_environment=FLAGS.mp_environment,
      mp_api_url=FLAGS.mp_api_url,
      mp_access_token=FLAGS.mp_access_token,
      mp_access_token_almagro=FLAGS.mp_access_token_almagro,
      mp_access_token_ciudad_jardin=FLAGS.mp_access_token_ciudad_jardin,
      mp_statement_descriptor=FLAGS.mp_statement_descriptor,
      pickup_reservation_hours=FLAGS.pickup_reservation_hours,
      quantity_inclusive_units=list(FLAGS.quantity_inclusive_units or []),
  )


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Shared lifespan manager for initializing the database."""
  del app  # Unused.
  # In tests the database is wired through dependency overrides instead.
  settings = get_settings()
  if settings.database_path:
    await db.manager.init_db(settings.database_path)
  yield
  await db.manager.close()
