# products/management/commands/check_stock_ledger.py

"""
Reconcile stored stock against the movement ledger.

For every batch:            remaining_quantity == SUM(movement deltas on the batch)
For every non-batch product: quantity_on_hand  == SUM(movement deltas on the product)
For every batch-tracked product: quantity_on_hand == SUM(remaining) over ACTIVE batches
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Sum

from core.money import ZERO
from products.models import InventoryBatch, Product
from products.services.stock_movements import net_quantity


class Command(BaseCommand):
    help = "Check that batch / product quantities match the stock movement ledger."

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any mismatch is found.",
        )

    def handle(self, *args, **options):
        errors = 0

        self.stdout.write(self.style.MIGRATE_HEADING("Stock ledger reconciliation"))

        for batch in InventoryBatch.objects.select_related("product").order_by("product__sku", "batch_number"):
            ledger = net_quantity(product=batch.product, batch=batch)
            if ledger != batch.remaining_quantity:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"[FAIL] {batch}: remaining={batch.remaining_quantity} ledger={ledger}"
                    )
                )

        for product in Product.objects.order_by("sku"):
            batches = InventoryBatch.objects.filter(product=product)
            if batches.exists():
                expected = (
                    batches.filter(status=InventoryBatch.Status.ACTIVE)
                    .aggregate(total=Sum("remaining_quantity"))
                    .get("total")
                    or ZERO
                )
                source = "active batches"
            else:
                expected = net_quantity(product=product)
                source = "ledger"

            if expected != product.quantity_on_hand:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"[FAIL] {product.sku}: quantity_on_hand={product.quantity_on_hand} {source}={expected}"
                    )
                )

        if errors == 0:
            self.stdout.write(self.style.SUCCESS("[OK] Stock matches the ledger"))
            return

        message = f"Stock ledger check found {errors} problem(s)"
        if options.get("strict"):
            raise CommandError(message)
        self.stderr.write(self.style.ERROR(message))
