from django.contrib import admin

from apps.products.product_base.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "seller",
        "price",
        "discount_price",
        "status",
        "is_customizable",
    )
    list_filter = ("status", "is_customizable", "is_active")
    search_fields = ("title", "seller__email")
    readonly_fields = ("slug", "created_at", "updated_at")
