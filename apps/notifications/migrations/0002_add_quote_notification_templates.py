from django.db import migrations

QUOTE_TEMPLATES = [
    {
        "name": "quote_requested",
        "subject": "New quote request",
        "body": "{customer_name} requested a quote for {product_title}.",
    },
    {
        "name": "quote_responded",
        "subject": "Your quote was updated",
        "body": "{artisan_name} responded to your quote for {product_title}: {status}.",
    },
    {
        "name": "quote_accepted",
        "subject": "Quote accepted",
        "body": "The quote for {product_title} was accepted at {price}. It is ready to be ordered.",
    },
    {
        "name": "quote_message",
        "subject": "New message on a quote",
        "body": "You have a new message on the quote for {product_title}.",
    },
    {
        "name": "quote_cancelled",
        "subject": "Quote cancelled",
        "body": "The quote for {product_title} was cancelled.",
    },
    {
        "name": "quote_expired",
        "subject": "Quote expired",
        "body": "The quote for {product_title} expired without a decision.",
    },
    {
        "name": "quote_completed",
        "subject": "Quote converted to an order",
        "body": "The accepted quote for {product_title} was converted into an order.",
    },
]


def create_quote_notification_templates(apps, schema_editor):
    NotificationTemplate = apps.get_model("notifications", "NotificationTemplate")
    for template in QUOTE_TEMPLATES:
        NotificationTemplate.objects.update_or_create(
            name=template["name"],
            defaults={
                "subject": template["subject"],
                "body": template["body"],
                "channel": "in_app",
            },
        )


def remove_quote_notification_templates(apps, schema_editor):
    NotificationTemplate = apps.get_model("notifications", "NotificationTemplate")
    NotificationTemplate.objects.filter(
        name__in=[template["name"] for template in QUOTE_TEMPLATES]
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(
            create_quote_notification_templates, remove_quote_notification_templates
        ),
    ]
