"""Infrastructure layer — database, ledger, and the registry store.

This layer depends on stdlib, SQLAlchemy, and the domain layer.
It must never import from services, commands, or output.
The service layer bridges between domain guards and infrastructure.
"""
