"""
Make quote numbers unique per user.

Blank numbers are excluded so legacy rows without a number do not collide.
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("quotes", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="quote",
            constraint=models.UniqueConstraint(
                condition=models.Q(("quote_number", ""), _negated=True),
                fields=("user", "quote_number"),
                name="unique_quote_number_per_user",
            ),
        ),
    ]
