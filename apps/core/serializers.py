from rest_framework import serializers
from django.contrib.auth import get_user_model

from apps.products.product_base.models import Product


User = get_user_model()


class TimestampedModelSerializer(serializers.ModelSerializer):
    class Meta:
        abstract = True

    created_at = serializers.DateTimeField(read_only=True, required=False)
    updated_at = serializers.DateTimeField(read_only=True, required=False)


class UserShortSerializer(serializers.ModelSerializer):
    """Serializer for a short representation of the user."""

    full_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "first_name", "full_name", "role"]

    def get_full_name(self, obj):
        return obj.get_full_name()


class ProductSummarySerializer(serializers.ModelSerializer):
    """Minimal product info for quote responses"""

    formatted_price = serializers.SerializerMethodField()
    seller_name = serializers.CharField(source="seller.get_full_name", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "price",
            "discount_price",
            "formatted_price",
            "seller_name",
            "is_customizable",
        ]

    def get_formatted_price(self, obj):
        price = obj.current_price
        if price is None:
            return None
        return f"${price:,.2f}"
