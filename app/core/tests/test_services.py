"""
Tests for BaseService.
"""

import logging

import pytest
from django.db import DatabaseError

from core.exceptions import StorageError, ValidationError
from core.services import BaseService
from ledger.models import Ledger


class ExampleService(BaseService):
    pass


class TestBaseService:
    """Tests for the logger and atomic helpers."""

    def test_logger_named_after_service(self):
        logger = ExampleService.get_logger()

        assert isinstance(logger, logging.Logger)
        assert logger.name == f"{__name__}.ExampleService"

    def test_atomic_translates_database_errors(self, db):
        with pytest.raises(StorageError) as exc_info:
            with ExampleService.atomic():
                raise DatabaseError("could not serialize access")

        assert exc_info.value.details["service"] == "ExampleService"

    def test_atomic_rolls_back_on_domain_error(self, user):
        with pytest.raises(ValidationError):
            with ExampleService.atomic():
                Ledger.objects.create(user=user, name="Doomed")
                raise ValidationError("nope")

        assert not Ledger.objects.filter(name="Doomed").exists()
