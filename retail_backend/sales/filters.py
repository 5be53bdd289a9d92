# sales/filters.py

import django_filters
from django.db.models import Q

from sales.models import Sale


class SaleFilter(django_filters.FilterSet):
    """
    Sales history filters:
    ?status=&payment_method=&customer=&date_from=YYYY-MM-DD&date_to=YYYY-MM-DD&q=
    """

    status = django_filters.ChoiceFilter(choices=Sale.STATUS_CHOICES)
    payment_method = django_filters.ChoiceFilter(choices=Sale.PaymentMethod.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    date_from = django_filters.DateFilter(field_name="sale_date", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="sale_date", lookup_expr="date__lte")
    q = django_filters.CharFilter(method="filter_q")

    class Meta:
        model = Sale
        fields = ["status", "payment_method", "customer", "date_from", "date_to", "q"]

    def filter_q(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(sale_number__icontains=value) | Q(customer__name__icontains=value)
        )
