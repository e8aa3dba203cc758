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

"""Utility script to dump stored orders.

This script reads from the configured SQLite database and prints a summary of
the stored orders, including their status, payment method and line items.
With `--pending_preference_only` it lists only gateway orders that were
recorded but never got a payment preference; those can be recovered through
`POST /orders/{id}/payment-preference`.

Usage:
  dump-orders --database_path=... [--pending_preference_only]
"""

import asyncio
import sys
from typing import List

from absl import app as absl_app
from absl import flags
from checkout_engine import config
from checkout_engine import db
from checkout_engine.models import Order
from checkout_engine.stores import SqlOrderStore

FLAGS = config.FLAGS
flags.DEFINE_bool(
    "pending_preference_only",
    False,
    "Only list gateway orders left without a payment preference",
)


def format_order(order: Order) -> List[str]:
  """Formats one order as printable lines."""
  lines = [
      f"Order: {order.id} [{order.status.value}/"
      f"{order.payment_status.value}] via {order.payment_method.value}",
      f"  Customer: {order.customer_snapshot.name}"
      f" <{order.customer_snapshot.email}>",
  ]
  if order.items:
    for li in order.items:
      item_id = li.product_id or li.course_id or "N/A"
      lines.append(
          f"  - {li.name} (ID: {item_id}) x{li.quantity} @"
          f" ${li.unit_price:.2f} = ${li.total:.2f}"
      )
  else:
    lines.append("  (No items)")
  lines.append(f"  Total: ${order.total_amount:.2f} {order.currency}")
  if order.metadata:
    metadata = order.metadata
    order_type = metadata.order_type.value if metadata.order_type else "-"
    sede = metadata.sede.value if metadata.sede else "-"
    pickup = "; ".join(metadata.pickup_locations) or "-"
    lines.append(
        f"  Fulfillment: type={order_type} sede={sede} pickup={pickup}"
    )
  if order.mp_preference_id:
    lines.append(f"  Preference: {order.mp_preference_id}")
  return lines


async def dump_orders():
  """Queries the database and prints the stored orders."""
  if not FLAGS.database_path:
    print("Error: --database_path is required.")
    sys.exit(1)

  await db.manager.init_db(FLAGS.database_path)
  try:
    if FLAGS.pending_preference_only:
      store = SqlOrderStore(db.manager.session_factory)
      orders = await store.list_pending_preferences()
    else:
      async with db.manager.session_factory() as session:
        documents = await db.list_orders(session)
      orders = [Order.model_validate(d) for d in documents]
  finally:
    await db.manager.close()

  if not orders:
    print("No orders found.")
    return

  for order in orders:
    print("\n".join(format_order(order)))
    print("-" * 60)


def main(argv):
  """Main entry point for the order dump script."""
  del argv
  asyncio.run(dump_orders())


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
