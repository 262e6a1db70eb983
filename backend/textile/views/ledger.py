"""Ledger API views.

Khata and bill endpoints go through the configured ledger store so the mock
and database strategies answer the same requests.  Parties, bank accounts,
transactions and cheques are plain model viewsets, optionally nested under a
khata.
"""

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..conf import ledger_setting
from ..exceptions import ValidationFailed
from ..models import BankAccount, Bill, Cheque, Khata, LedgerTransaction, Party
from ..serializers import (
    BankAccountSerializer,
    BillCreateSerializer,
    BillUpdateSerializer,
    ChequeSerializer,
    KhataSerializer,
    LedgerTransactionSerializer,
    PartySerializer,
)
from ..services.ledger import get_ledger_store, serialize_bill
from .utils import EnvelopeViewSetMixin, envelope, query_int

BILL_FILTERS = ('khataId', 'partyId', 'billType', 'status', 'startDate', 'endDate')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def khata_collection(request):
    store = get_ledger_store()
    if request.method == 'POST':
        khata = store.create_khata(request.data)
        return envelope(
            {'khata': khata},
            message='Khata created successfully',
            status=status.HTTP_201_CREATED,
        )
    return envelope({'khatas': store.list_khatas()})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bill_collection(request):
    store = get_ledger_store()
    if request.method == 'POST':
        cleaned, errors = BillCreateSerializer(data=request.data).validate_payload()
        if errors:
            raise ValidationFailed('Invalid bill data', details='; '.join(errors))
        bill = store.create_bill(cleaned)
        return envelope(bill, message='Bill created successfully', status=status.HTTP_201_CREATED)

    filters = {key: request.query_params.get(key) for key in BILL_FILTERS}
    page = query_int(request, 'page', 1, minimum=1)
    page_size = query_int(request, 'pageSize', ledger_setting('BILL_PAGE_SIZE'), minimum=1)
    return envelope(store.list_bills(filters, page, page_size))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def bill_detail(request, pk):
    store = get_ledger_store()
    if request.method == 'PATCH':
        serializer = BillUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        bill = store.update_bill(pk, serializer.validated_data)
        return envelope(bill, message='Bill updated successfully')
    if request.method == 'DELETE':
        store.delete_bill(pk)
        return envelope(message='Bill deleted successfully')
    return envelope(store.get_bill(pk))


class KhataScopedViewSetMixin:
    """Restrict a ledger viewset to the khata named in a nested route."""

    def get_khata(self):
        khata_pk = self.kwargs.get('khata_pk')
        if khata_pk is None:
            return None
        try:
            return Khata.objects.get(pk=khata_pk)
        except Khata.DoesNotExist:
            raise NotFound(detail='Khata not found.')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        khata = self.get_khata()
        if khata is not None:
            context['khata'] = khata
        return context

    def scope_to_khata(self, queryset, lookup='khata_id'):
        khata_pk = self.kwargs.get('khata_pk') or self.request.query_params.get('khataId')
        if khata_pk:
            queryset = queryset.filter(**{lookup: khata_pk})
        return queryset


class LoggedViewSetMixin:
    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    @transaction.atomic
    def perform_destroy(self, instance):
        log_activity(self.request.user, 'deleted', instance)
        instance.delete()


class KhataViewSet(EnvelopeViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """Khata records addressed by id; the parent of the nested ledger routes."""

    serializer_class = KhataSerializer
    permission_classes = [IsAuthenticated]
    queryset = Khata.objects.order_by('name')


class KhataBillViewSet(KhataScopedViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """Bills of one khata, rendered the same way as the bill endpoints."""

    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return self.scope_to_khata(Bill.objects.select_related('party').order_by('-bill_date', '-id'))

    def list(self, request, *args, **kwargs):
        self.get_khata()
        return envelope([serialize_bill(bill) for bill in self.get_queryset()])

    def retrieve(self, request, *args, **kwargs):
        return envelope(serialize_bill(self.get_object(), include_transactions=True))


class PartyViewSet(KhataScopedViewSetMixin, LoggedViewSetMixin, EnvelopeViewSetMixin, viewsets.ModelViewSet):
    serializer_class = PartySerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = self.scope_to_khata(Party.objects.order_by('name'))
        party_type = self.request.query_params.get('partyType')
        if party_type:
            queryset = queryset.filter(party_type=party_type)
        return queryset


class BankAccountViewSet(KhataScopedViewSetMixin, LoggedViewSetMixin, EnvelopeViewSetMixin, viewsets.ModelViewSet):
    serializer_class = BankAccountSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return self.scope_to_khata(BankAccount.objects.order_by('account_name'))


class LedgerTransactionViewSet(
    KhataScopedViewSetMixin, LoggedViewSetMixin, EnvelopeViewSetMixin, viewsets.ModelViewSet
):
    """Ledger transactions; saving or deleting one moves bill and bank balances."""

    serializer_class = LedgerTransactionSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = self.scope_to_khata(
            LedgerTransaction.objects.select_related('party', 'bill', 'bank_account')
        )
        params = self.request.query_params
        if params.get('billId'):
            queryset = queryset.filter(bill_id=params['billId'])
        if params.get('partyId'):
            queryset = queryset.filter(party_id=params['partyId'])
        if params.get('transactionType'):
            queryset = queryset.filter(transaction_type=params['transactionType'])
        return queryset


class ChequeViewSet(KhataScopedViewSetMixin, LoggedViewSetMixin, EnvelopeViewSetMixin, viewsets.ModelViewSet):
    serializer_class = ChequeSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = self.scope_to_khata(
            Cheque.objects.select_related('bank_account', 'bill'), lookup='bank_account__khata_id'
        )
        cheque_status = self.request.query_params.get('status')
        if cheque_status:
            queryset = queryset.filter(status=cheque_status)
        return queryset
