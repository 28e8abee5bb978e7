"""
Add the installment transaction kind and the installment plan actions.
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("ledger", "0003_scope_idempotency_key_to_ledger"),
    ]

    operations = [
        migrations.AlterField(
            model_name="transaction",
            name="kind",
            field=models.CharField(
                choices=[
                    ("standard", "Standard"),
                    ("assignment", "Assignment"),
                    ("move", "Move"),
                    ("transfer", "Transfer"),
                    ("card_payment", "Card Payment"),
                    ("card_routing", "Card Routing"),
                    ("interest", "Interest"),
                    ("fee", "Fee"),
                    ("adjustment", "Adjustment"),
                    ("installment", "Installment"),
                    ("reversal", "Reversal"),
                ],
                db_index=True,
                default="standard",
                help_text="What this posting represents",
                max_length=20,
            ),
        ),
        migrations.AlterField(
            model_name="actionhistory",
            name="action_type",
            field=models.CharField(
                choices=[
                    ("create_ledger", "Create Ledger"),
                    ("update_ledger", "Update Ledger"),
                    ("create_account", "Create Account"),
                    ("update_account", "Update Account"),
                    ("delete_account", "Delete Account"),
                    ("post_transaction", "Post Transaction"),
                    ("reverse_transaction", "Reverse Transaction"),
                    ("delete_transaction", "Delete Transaction"),
                    ("edit_transaction", "Edit Transaction"),
                    ("transfer", "Transfer"),
                    ("assign", "Assign"),
                    ("move", "Move"),
                    ("reconcile", "Reconcile"),
                    ("toggle_cleared", "Toggle Cleared"),
                    ("configure_limit", "Configure Limit"),
                    ("generate_statement", "Generate Statement"),
                    ("materialize", "Materialize"),
                    ("skip_occurrence", "Skip Occurrence"),
                    ("create_installment_plan", "Create Installment Plan"),
                    ("update_installment_plan", "Update Installment Plan"),
                    ("cancel_installment_plan", "Cancel Installment Plan"),
                    ("process_installment", "Process Installment"),
                ],
                db_index=True,
                help_text="Kind of mutation",
                max_length=40,
            ),
        ),
    ]
