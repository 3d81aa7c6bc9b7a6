from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema

from apps.quotes.api.serializers import (
    NegotiationEntrySerializer,
    QuoteCancelSerializer,
    QuoteCreateSerializer,
    QuoteMessageSerializer,
    QuoteRequestDetailSerializer,
    QuoteRequestListSerializer,
    QuoteRespondSerializer,
    QuoteStatsSerializer,
)

QUOTE_ID = OpenApiParameter(
    name="id",
    description="UUID of the quote request",
    required=True,
    type=OpenApiTypes.UUID,
    location=OpenApiParameter.PATH,
)

LIST_PARAMETERS = [
    OpenApiParameter(
        name="status",
        description="Comma separated statuses, e.g. pending,counter_offered",
        type=OpenApiTypes.STR,
    ),
    OpenApiParameter(name="product", type=OpenApiTypes.UUID),
    OpenApiParameter(name="customer", type=OpenApiTypes.UUID),
    OpenApiParameter(name="artisan", type=OpenApiTypes.UUID),
    OpenApiParameter(name="date_from", type=OpenApiTypes.DATETIME),
    OpenApiParameter(name="date_to", type=OpenApiTypes.DATETIME),
    OpenApiParameter(name="ordering", type=OpenApiTypes.STR),
    OpenApiParameter(name="page", type=OpenApiTypes.INT),
    OpenApiParameter(name="page_size", type=OpenApiTypes.INT),
]

ROLE_PARAMETER = OpenApiParameter(
    name="role",
    description="Restrict to quotes where you are the customer or the artisan",
    type=OpenApiTypes.STR,
    enum=["customer", "artisan"],
)

CREATE_QUOTE = extend_schema(
    request=QuoteCreateSerializer,
    responses={201: QuoteRequestDetailSerializer},
    summary="Request a quote for a customizable product",
)

LIST_QUOTES = extend_schema(
    parameters=LIST_PARAMETERS,
    responses={200: QuoteRequestListSerializer(many=True)},
    summary="List quotes visible to the current user",
)

MY_QUOTES = extend_schema(
    parameters=LIST_PARAMETERS + [ROLE_PARAMETER],
    responses={200: QuoteRequestListSerializer(many=True)},
    summary="List quotes the current user is a party to",
)

RETRIEVE_QUOTE = extend_schema(
    parameters=[QUOTE_ID], responses={200: QuoteRequestDetailSerializer}
)

RESPOND_TO_QUOTE = extend_schema(
    parameters=[QUOTE_ID],
    request=QuoteRespondSerializer,
    responses={200: QuoteRequestDetailSerializer},
    summary="Artisan accepts, rejects or counters a quote",
)

ADD_MESSAGE = extend_schema(
    parameters=[QUOTE_ID],
    request=QuoteMessageSerializer,
    responses={201: QuoteRequestDetailSerializer},
)

QUOTE_HISTORY = extend_schema(
    parameters=[QUOTE_ID],
    responses={200: NegotiationEntrySerializer(many=True)},
)

CANCEL_QUOTE = extend_schema(
    parameters=[QUOTE_ID],
    request=QuoteCancelSerializer,
    responses={200: QuoteRequestDetailSerializer},
)

COMPLETE_QUOTE = extend_schema(
    parameters=[QUOTE_ID],
    request=None,
    responses={200: QuoteRequestDetailSerializer},
    summary="Mark an accepted quote as converted into an order (staff only)",
)

QUOTE_STATS = extend_schema(
    parameters=[ROLE_PARAMETER],
    responses={200: QuoteStatsSerializer},
)
