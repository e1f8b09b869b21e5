import django_filters
from django.db.models import Q

from .models import Order


class AdminOrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Order.Status.choices)
    id = django_filters.UUIDFilter(field_name="id")
    uuid = django_filters.CharFilter(field_name="uuid", lookup_expr="icontains")
    email = django_filters.CharFilter(method="filter_email")

    # Aliases the storefront admin still sends
    finalId = django_filters.CharFilter(field_name="uuid", lookup_expr="icontains")
    finaId = django_filters.CharFilter(field_name="uuid", lookup_expr="icontains")
    userEmail = django_filters.CharFilter(method="filter_email")

    class Meta:
        model = Order
        fields = ["status", "id", "uuid", "email"]

    def filter_email(self, queryset, name, value):
        return queryset.filter(Q(email__icontains=value) | Q(user__email__icontains=value))
