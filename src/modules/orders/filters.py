import django_filters
from django.db.models import Q

from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(
        field_name="status", choices=OrderStatus.choices
    )
    start_date = django_filters.DateFilter(
        field_name="delivery_date", lookup_expr="gte"
    )
    end_date = django_filters.DateFilter(field_name="delivery_date", lookup_expr="lte")
    time_slot = django_filters.CharFilter(field_name="delivery_time_slot")
    area = django_filters.CharFilter(field_name="delivery_area", lookup_expr="iexact")
    search = django_filters.CharFilter(method="filter_search")
    include_archived = django_filters.BooleanFilter(method="filter_archived")

    class Meta:
        model = Order
        fields = [
            "status",
            "start_date",
            "end_date",
            "time_slot",
            "area",
            "search",
            "include_archived",
        ]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(customer_name__icontains=value)
            | Q(customer_phone__icontains=value)
            | Q(cake_text__icontains=value)
        )

    def filter_archived(self, queryset, name, value):
        if value:
            return queryset
        return queryset.exclude(status=OrderStatus.ARCHIVED)
