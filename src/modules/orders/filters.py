import django_filters

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    user = django_filters.NumberFilter(method="filter_user")

    class Meta:
        model = Order
        fields = ["status", "payment_method", "date_from", "date_to", "user"]

    def filter_user(self, queryset, name, value):
        # Non-staff querysets are already scoped to the caller.
        request = getattr(self, "request", None)
        if request is None or not request.user.is_staff:
            return queryset
        return queryset.filter(user_id=value)
