"""
Celery configuration for the Django application.

Celery runs the ledger's periodic sweeps:
- Materializing due recurring transactions
- Generating credit card statements and accruing interest
- Processing scheduled card payments
- Purging expired action history

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps; their beat
schedules are created by data migrations (django-celery-beat).

Usage:
    # Define a task in any app's tasks.py:
    from celery import shared_task

    @shared_task
    def process_recurring_transactions():
        ...

    # Call the task asynchronously:
    process_recurring_transactions.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
