from django.urls import path

from .views import (
    AdminOrderStatusView,
    AdminOrderViewSet,
    CreateOrderView,
    MyOrdersView,
    OrderStatusView,
)

admin_list = AdminOrderViewSet.as_view({"get": "list"})
admin_detail = AdminOrderViewSet.as_view({"get": "retrieve"})

urlpatterns = [
    path("", CreateOrderView.as_view(), name="order-create"),
    path("status/", OrderStatusView.as_view(), name="order-status"),
    path("my/", MyOrdersView.as_view(), name="my-orders"),
    path("admin/", admin_list, name="admin-order-list"),
    path("admin/status/", AdminOrderStatusView.as_view(), name="admin-order-status"),
    path("admin/<str:pk>/", admin_detail, name="admin-order-detail"),
]
