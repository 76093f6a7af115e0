"""
Make invoice numbers unique per user.

Blank numbers are excluded so legacy rows without a number do not collide.
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("invoices", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="invoice",
            constraint=models.UniqueConstraint(
                condition=models.Q(("invoice_number", ""), _negated=True),
                fields=("user", "invoice_number"),
                name="unique_invoice_number_per_user",
            ),
        ),
    ]
