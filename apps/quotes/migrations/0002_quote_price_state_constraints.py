from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("quotes", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="quoterequest",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("final_price__isnull", True),
                    ("status__in", ["accepted", "completed"]),
                    _connector="OR",
                ),
                name="quote_final_price_only_when_accepted",
            ),
        ),
        migrations.AddConstraint(
            model_name="quoterequest",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("counter_offer__isnull", True),
                    ("status", "counter_offered"),
                    _connector="OR",
                ),
                name="quote_counter_offer_only_when_countered",
            ),
        ),
    ]
