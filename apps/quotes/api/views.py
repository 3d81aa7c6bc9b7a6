import logging

from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated

from apps.core.views import BaseResponseMixin
from apps.quotes.actions import build_response
from apps.quotes.api import schema
from apps.quotes.api.serializers import (
    NegotiationEntrySerializer,
    QuoteCancelSerializer,
    QuoteCreateSerializer,
    QuoteListQuerySerializer,
    QuoteMessageSerializer,
    QuoteRequestDetailSerializer,
    QuoteRequestListSerializer,
    QuoteRespondSerializer,
)
from apps.quotes.models import NegotiationActor
from apps.quotes.services.negotiation_service import QuoteNegotiationService
from apps.quotes.services.quote_store import QuoteQuery
from apps.quotes.utils.rate_limiting import (
    QuoteCreateRateThrottle,
    QuoteMessageRateThrottle,
    QuoteReadRateThrottle,
    QuoteRespondRateThrottle,
)

logger = logging.getLogger("quotes_performance")

UUID_REGEX = r"[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}"


class QuoteRequestViewSet(BaseResponseMixin, viewsets.GenericViewSet):
    """
    Quote negotiation endpoints. All rules live in QuoteNegotiationService;
    these views only translate HTTP input and render the envelope.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = QuoteRequestDetailSerializer
    lookup_value_regex = UUID_REGEX

    throttle_map = {
        "create": QuoteCreateRateThrottle,
        "respond": QuoteRespondRateThrottle,
        "cancel": QuoteRespondRateThrottle,
        "complete": QuoteRespondRateThrottle,
        "messages": QuoteMessageRateThrottle,
    }

    def get_throttles(self):
        throttle_class = self.throttle_map.get(self.action, QuoteReadRateThrottle)
        return [throttle_class()]

    def get_permissions(self):
        if self.action == "complete":
            return [IsAuthenticated(), IsAdminUser()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "create":
            return QuoteCreateSerializer
        if self.action in ("list", "my_quotes"):
            return QuoteRequestListSerializer
        if self.action == "respond":
            return QuoteRespondSerializer
        if self.action == "messages":
            return QuoteMessageSerializer
        if self.action == "cancel":
            return QuoteCancelSerializer
        if self.action == "history":
            return NegotiationEntrySerializer
        return QuoteRequestDetailSerializer

    def _detail(self, quote, message="Success", status_code=status.HTTP_200_OK):
        # Re-read so nested product and party data are loaded
        quote = QuoteNegotiationService.get_quote(quote.id)
        serializer = QuoteRequestDetailSerializer(
            quote, context=self.get_serializer_context()
        )
        return self.success_response(
            data=serializer.data, message=message, status_code=status_code
        )

    def _parse_query(self, request):
        serializer = QuoteListQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        query = QuoteQuery(
            customer_id=params.get("customer"),
            artisan_id=params.get("artisan"),
            product_id=params.get("product"),
            statuses=params.get("status", []),
            date_from=params.get("date_from"),
            date_to=params.get("date_to"),
            ordering=params["ordering"],
            page=params["page"],
            page_size=params["page_size"],
        )
        return query, params.get("role")

    def _page_response(self, page):
        serializer = QuoteRequestListSerializer(
            page.results, many=True, context=self.get_serializer_context()
        )
        return self.success_response(
            data={
                "count": page.total,
                "total_pages": page.total_pages,
                "page": page.page,
                "page_size": page.page_size,
                "results": serializer.data,
            }
        )

    @schema.CREATE_QUOTE
    def create(self, request):
        start_time = timezone.now()
        serializer = QuoteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quote = QuoteNegotiationService.create_quote_request(
            customer_id=request.user.id,
            product_id=data["product_id"],
            requested_price=data.get("requested_price"),
            specifications=data.get("specifications", ""),
            message=data.get("message", ""),
            expires_in_days=data.get("expires_in_days"),
        )

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Quote request created via API in {duration:.2f}ms")
        return self._detail(
            quote, message="Quote request sent", status_code=status.HTTP_201_CREATED
        )

    @schema.LIST_QUOTES
    def list(self, request):
        query, _ = self._parse_query(request)
        page = QuoteNegotiationService.list_quotes(request.user, query)
        return self._page_response(page)

    @schema.MY_QUOTES
    @action(detail=False, methods=["get"], url_path="my-quotes")
    def my_quotes(self, request):
        query, role = self._parse_query(request)
        if role == NegotiationActor.CUSTOMER:
            page = QuoteNegotiationService.list_for_customer(request.user.id, query)
        elif role == NegotiationActor.ARTISAN:
            page = QuoteNegotiationService.list_for_artisan(request.user.id, query)
        else:
            page = QuoteNegotiationService.list_for_participant(request.user.id, query)
        return self._page_response(page)

    @schema.QUOTE_STATS
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        role = request.query_params.get("role")
        if role not in (NegotiationActor.CUSTOMER, NegotiationActor.ARTISAN):
            role = None

        if request.user.is_staff and role is None:
            data = QuoteNegotiationService.get_stats()
        else:
            data = QuoteNegotiationService.get_stats(user_id=request.user.id, role=role)
        return self.success_response(data=data)

    @schema.RETRIEVE_QUOTE
    def retrieve(self, request, pk=None):
        quote = QuoteNegotiationService.get_quote(pk, user=request.user)
        serializer = QuoteRequestDetailSerializer(
            quote, context=self.get_serializer_context()
        )
        return self.success_response(data=serializer.data)

    @schema.RESPOND_TO_QUOTE
    @action(detail=True, methods=["post"], url_path="respond")
    def respond(self, request, pk=None):
        start_time = timezone.now()
        serializer = QuoteRespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        response = build_response(
            data["action"],
            counter_offer=data.get("counter_offer"),
            message=data.get("message"),
        )
        quote = QuoteNegotiationService.respond_to_quote(pk, request.user.id, response)

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Quote response processed in {duration:.2f}ms")
        return self._detail(quote, message=f"Quote {quote.get_status_display().lower()}")

    @schema.ADD_MESSAGE
    @action(detail=True, methods=["post"], url_path="messages")
    def messages(self, request, pk=None):
        serializer = QuoteMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = QuoteNegotiationService.add_message(
            pk, request.user.id, serializer.validated_data["message"]
        )
        return self._detail(
            quote, message="Message sent", status_code=status.HTTP_201_CREATED
        )

    @schema.QUOTE_HISTORY
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        entries = QuoteNegotiationService.get_negotiation_history(pk, user=request.user)
        serializer = NegotiationEntrySerializer(entries, many=True)
        return self.success_response(data=serializer.data)

    @schema.CANCEL_QUOTE
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        serializer = QuoteCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = QuoteNegotiationService.cancel_quote(
            pk, request.user.id, reason=serializer.validated_data.get("reason", "")
        )
        return self._detail(quote, message="Quote cancelled")

    @schema.COMPLETE_QUOTE
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        quote = QuoteNegotiationService.complete_quote(pk)
        return self._detail(quote, message="Quote completed")
