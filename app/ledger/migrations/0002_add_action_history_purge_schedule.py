"""
Add celery-beat schedule for the action history retention purge.

Runs ledger.tasks.purge_action_history once a day at 03:15 UTC.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for purging old action history."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="15",
        hour="3",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name="Purge Action History",
        defaults={
            "task": "ledger.tasks.purge_action_history",
            "crontab": schedule,
            "enabled": True,
            "description": (
                "Deletes action history rows older than ACTION_HISTORY_RETENTION_DAYS."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Purge Action History").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("ledger", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
