"""Service layer for business logic.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

The scheduling, streak and analytics modules are pure functions over
habits and completions and never touch the database. The ``habits`` and
``completions`` services orchestrate repositories, raise the domain errors
from core.errors, and return ORM objects or frozen dataclasses; routes do
the conversion to response schemas.
"""
