from .refund_command import RefundCreateSerializer
from .sale import RefundSerializer, SaleItemSerializer, SaleSerializer
from .sale_command import (
    SaleCreateSerializer,
    TotalsPreviewSerializer,
    VoidSaleSerializer,
)

__all__ = [
    "RefundCreateSerializer",
    "RefundSerializer",
    "SaleCreateSerializer",
    "SaleItemSerializer",
    "SaleSerializer",
    "TotalsPreviewSerializer",
    "VoidSaleSerializer",
]
