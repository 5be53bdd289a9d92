# products/urls.py

"""
PRODUCTS URLS

Mounted at /api/products/. Explicit and prefixed routes are registered before
the product routes so "adjustments" / "batches" are never read as a <pk>.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import (
    InventoryBatchViewSet,
    ProductViewSet,
    StockAdjustmentView,
    StockMovementViewSet,
)

router = SimpleRouter()
router.register(r"batches", InventoryBatchViewSet, basename="batches")
router.register(r"movements", StockMovementViewSet, basename="movements")
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("adjustments/", StockAdjustmentView.as_view(), name="stock-adjustments"),
    path("", include(router.urls)),
]
