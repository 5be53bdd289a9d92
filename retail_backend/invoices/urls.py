# invoices/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from invoices.views import InvoiceViewSet

router = SimpleRouter()
router.register(r"", InvoiceViewSet, basename="invoices")

urlpatterns = [
    path("", include(router.urls)),
]
