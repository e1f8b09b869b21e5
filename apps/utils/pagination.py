from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """
    ?page=2&limit=20 style pagination used by the admin/back-office lists.
    """
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            "data": data,
            "total": self.page.paginator.count,
            "page": self.page.number,
            "limit": self.get_page_size(self.request),
            "pages": self.page.paginator.num_pages,
        })
