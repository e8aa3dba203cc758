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

"""Checkout Server (Python/FastAPI)."""

import logging
import sys
from typing import Sequence

from absl import app as absl_app
from checkout_engine import config
from checkout_engine.exceptions import CheckoutError
from checkout_engine.exceptions import InvalidCheckoutRequestError
from checkout_engine.routes.checkout import router as checkout_router
from checkout_engine.routes.order import router as order_router
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn

# --- App Setup ---

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Checkout Service",
    version="1.0.0",
    description="Order composition and payment hand-off for the store",
    lifespan=config.lifespan,
)


@app.exception_handler(CheckoutError)
async def checkout_exception_handler(request: Request, exc: CheckoutError):
  """Handles checkout exceptions and converts them to JSON responses."""
  del request  # Unused.
  return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
  """Reports body-schema violations as invalid checkout requests."""
  del request  # Unused.
  problems = "; ".join(
      f"{'.'.join(str(p) for p in error.get('loc', ()))}: {error.get('msg')}"
      for error in exc.errors()
  )
  error = InvalidCheckoutRequestError(f"Invalid request: {problems}")
  return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
  """Logs unexpected failures and hides their details from the caller."""
  logger.exception(
      "Unexpected error handling %s %s",
      request.method,
      request.url.path,
      exc_info=exc,
  )
  error = CheckoutError("Internal error processing the request")
  return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.get("/health", operation_id="health")
async def health():
  return {"status": "ok"}


app.include_router(checkout_router)
app.include_router(order_router)


def main(argv: Sequence[str]) -> None:
  """Main entry point for the Checkout Server."""
  del argv  # Unused.

  if config.FLAGS.database_path is None or config.FLAGS.port is None:
    logger.error("Both --database_path and --port must be provided.")
    print("\nUsage:")
    print(config.FLAGS.main_module_help())
    sys.exit(1)

  uvicorn.run(app, host="0.0.0.0", port=config.FLAGS.port)


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
