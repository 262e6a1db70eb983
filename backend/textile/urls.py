"""URL routing for the textile API."""

from django.urls import include, path
from rest_framework.permissions import AllowAny
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views.dyeing import DyeingProcessViewSet
from .views.fabric import FabricProductionViewSet
from .views.inventory import InventoryViewSet, inventory_report
from .views.ledger import (
    BankAccountViewSet,
    ChequeViewSet,
    KhataBillViewSet,
    KhataViewSet,
    LedgerTransactionViewSet,
    PartyViewSet,
    bill_collection,
    bill_detail,
    khata_collection,
)
from .views.sales import SalesOrderViewSet, SalesPaymentViewSet, sales_report
from .views.threads import ThreadPurchaseViewSet, VendorViewSet

router = DefaultRouter()
router.register(r'thread', ThreadPurchaseViewSet, basename='thread-purchase')
router.register(r'vendors', VendorViewSet, basename='vendor')
router.register(r'dyeing/process', DyeingProcessViewSet, basename='dyeing-process')
router.register(r'fabric/production', FabricProductionViewSet, basename='fabric-production')
router.register(r'inventory', InventoryViewSet, basename='inventory')
router.register(r'sales', SalesOrderViewSet, basename='sales-order')
router.register(r'ledger/khatas', KhataViewSet, basename='ledger-khata')
router.register(r'ledger/parties', PartyViewSet, basename='ledger-party')
router.register(r'ledger/transactions', LedgerTransactionViewSet, basename='ledger-transaction')
router.register(r'ledger/bank-accounts', BankAccountViewSet, basename='ledger-bank-account')
router.register(r'ledger/cheques', ChequeViewSet, basename='ledger-cheque')

sales_router = routers.NestedSimpleRouter(router, r'sales', lookup='sales_order')
sales_router.register(r'payments', SalesPaymentViewSet, basename='sales-order-payments')

khatas_router = routers.NestedSimpleRouter(router, r'ledger/khatas', lookup='khata')
khatas_router.register(r'parties', PartyViewSet, basename='khata-parties')
khatas_router.register(r'bills', KhataBillViewSet, basename='khata-bills')
khatas_router.register(r'transactions', LedgerTransactionViewSet, basename='khata-transactions')
khatas_router.register(r'bank-accounts', BankAccountViewSet, basename='khata-bank-accounts')

urlpatterns = [
    path(
        'token/',
        TokenObtainPairView.as_view(permission_classes=[AllowAny]),
        name='get_token',
    ),
    path(
        'token/refresh/',
        TokenRefreshView.as_view(permission_classes=[AllowAny]),
        name='refresh_token',
    ),
    path('ledger/khata/', khata_collection, name='ledger-khata-collection'),
    path('ledger/bill/', bill_collection, name='ledger-bill-collection'),
    path('ledger/bill/<int:pk>/', bill_detail, name='ledger-bill-detail'),
    path('reports/sales/', sales_report, name='sales-report'),
    path('reports/inventory/', inventory_report, name='inventory-report'),
    path('', include(router.urls)),
    path('', include(sales_router.urls)),
    path('', include(khatas_router.urls)),
]
