"""
Scope transaction idempotency keys to their ledger.

The same key may now be used by different ledgers; within one ledger it
stays unique.
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("ledger", "0002_add_action_history_purge_schedule"),
    ]

    operations = [
        migrations.AlterField(
            model_name="transaction",
            name="idempotency_key",
            field=models.CharField(
                blank=True,
                help_text="Per-ledger key to prevent duplicate postings",
                max_length=255,
                null=True,
            ),
        ),
        migrations.AddConstraint(
            model_name="transaction",
            constraint=models.UniqueConstraint(
                condition=models.Q(("idempotency_key__isnull", False)),
                fields=("ledger", "idempotency_key"),
                name="ledger_transaction_unique_idempotency_key",
            ),
        ),
    ]
