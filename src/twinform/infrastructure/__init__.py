"""Infrastructure layer — domain object adapters and document I/O.

Depends on the domain layer. Must never import from services or plugins.
"""
