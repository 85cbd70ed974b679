from django.conf import settings
from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination with a client-controlled ``page_size``.

    Default size comes from ``REST_FRAMEWORK["PAGE_SIZE"]``; requests above
    ``max_page_size`` are clamped.
    """

    page_size = settings.REST_FRAMEWORK.get("PAGE_SIZE", 20)
    page_size_query_param = "page_size"
    max_page_size = 100
