"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the ledger apps:

- Generic, reusable base classes (no bookkeeping logic)
- Clear extension points for domain apps
- Infrastructure concerns separated from business logic

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer (logger, atomic block)

Locks (import from core.locks):
    - DistributedLock: Redis lock guarding periodic sweeps

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - ConflictError: State conflicts (double reversal, etc.)
    - LockAcquisitionError: Distributed lock contention
    - StorageError: Database commit failures

Exception Handler (core.exception_handler):
    - application_exception_handler: DRF hook mapping exceptions to responses

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin
    from core.services import BaseService
    from core.exceptions import ValidationError, NotFoundError

Note:
    - Business logic should NOT go here. Extend core classes in your domain apps.
    - Django models and model mixins are NOT imported here to avoid AppRegistryNotReady
      errors. Import them directly from their modules.
"""

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    LockAcquisitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "LockAcquisitionError",
    "StorageError",
]
