from rest_framework.pagination import PageNumberPagination

class PackagePagination(PageNumberPagination):
    """Page-number pagination for the package catalog."""
    page_size = 12
    page_size_query_param = 'page_size'
    max_page_size = 60
