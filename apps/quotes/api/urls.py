from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.quotes.api.views import QuoteRequestViewSet

router = DefaultRouter()
router.register(r"quotes", QuoteRequestViewSet, basename="quote")

urlpatterns = [
    path("", include(router.urls)),
]

"""
Endpoints:

POST /quotes/                     request a quote
GET  /quotes/                     quotes visible to the user (staff: all)
GET  /quotes/my-quotes/           quotes the user is a party to (?role=customer|artisan)
GET  /quotes/stats/               aggregate figures for the user's scope
GET  /quotes/{id}/                quote detail
POST /quotes/{id}/respond/        artisan accept | reject | counter | message
POST /quotes/{id}/messages/       note from either party
GET  /quotes/{id}/history/        negotiation history, oldest first
POST /quotes/{id}/cancel/         either party withdraws an active quote
POST /quotes/{id}/complete/       staff converts an accepted quote

# Counter offer
POST /quotes/<id>/respond/
{
    "action": "counter",
    "counter_offer": "85.00",
    "message": "Hand-stitched lining adds cost"
}
"""
