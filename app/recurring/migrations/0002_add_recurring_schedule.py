"""
Add celery-beat schedule for recurring transactions.

Runs recurring.tasks.process_recurring_transactions every hour at minute 5.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the hourly periodic task for posting due recurring transactions."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="5",
        hour="*",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name="Process Recurring Transactions",
        defaults={
            "task": "recurring.tasks.process_recurring_transactions",
            "crontab": schedule,
            "enabled": True,
            "description": "Posts due auto-create recurring transactions, catching up missed dates.",
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Process Recurring Transactions").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("recurring", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
