import django_filters
from django.db.models import Q

from modules.customers.models import Customer


class CustomerFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    area = django_filters.CharFilter(
        field_name="addresses__area", lookup_expr="iexact", distinct=True
    )
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Customer
        fields = ["name", "area", "search"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(whatsapp_number__icontains=value)
            | Q(email__icontains=value)
        )
