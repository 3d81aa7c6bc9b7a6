from django.contrib import admin

from apps.quotes.models import NegotiationEntry, QuoteRequest


class NegotiationEntryInline(admin.TabularInline):
    model = NegotiationEntry
    extra = 0
    can_delete = False
    readonly_fields = (
        "action",
        "actor",
        "previous_price",
        "new_price",
        "message",
        "metadata",
        "timestamp",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(QuoteRequest)
class QuoteRequestAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "product",
        "customer",
        "artisan",
        "status",
        "requested_price",
        "counter_offer",
        "final_price",
        "expires_at",
    )
    list_filter = ("status",)
    search_fields = ("product__title", "customer__email", "artisan__email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [NegotiationEntryInline]


@admin.register(NegotiationEntry)
class NegotiationEntryAdmin(admin.ModelAdmin):
    list_display = ("quote", "action", "actor", "new_price", "timestamp")
    list_filter = ("action", "actor")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
