"""Profile operations.

Each module provides async functions that encapsulate store access and
business logic.  Managers accept a ``ProfileStore`` (and an
``Environment`` where the editor layout matters) and raise domain
exceptions (``LookupError``, ``ValueError``), never CLI errors -- that
translation is the command layer's responsibility.
"""
