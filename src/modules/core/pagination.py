from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination shared by every list endpoint.

    ``?page_size=`` overrides the default, capped at ``max_page_size``.
    """

    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100
