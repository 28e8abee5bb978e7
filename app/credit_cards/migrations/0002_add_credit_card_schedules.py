"""
Add celery-beat schedules for the credit card sweeps.

    00:30 UTC  credit_cards.tasks.generate_due_statements
    01:00 UTC  credit_cards.tasks.accrue_daily_interest
    06:00 UTC  credit_cards.tasks.process_scheduled_payments
"""

from django.db import migrations

SCHEDULES = [
    (
        "Generate Credit Card Statements",
        "credit_cards.tasks.generate_due_statements",
        "30",
        "0",
        "Closes the billing cycle of cards whose statement day is today.",
    ),
    (
        "Accrue Credit Card Interest",
        "credit_cards.tasks.accrue_daily_interest",
        "0",
        "1",
        "Charges daily or statement-day interest on cards with a positive APR.",
    ),
    (
        "Process Scheduled Card Payments",
        "credit_cards.tasks.process_scheduled_payments",
        "0",
        "6",
        "Posts scheduled credit card payments that are due.",
    ),
]


def create_periodic_tasks(apps, schema_editor):
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for name, task, minute, hour, description in SCHEDULES:
        schedule, _ = CrontabSchedule.objects.get_or_create(
            minute=minute,
            hour=hour,
            day_of_week="*",
            day_of_month="*",
            month_of_year="*",
        )
        PeriodicTask.objects.get_or_create(
            name=name,
            defaults={
                "task": task,
                "crontab": schedule,
                "enabled": True,
                "description": description,
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name__in=[entry[0] for entry in SCHEDULES]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("credit_cards", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
