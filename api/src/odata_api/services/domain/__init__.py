"""
Domain Layer

This package contains business logic organized by domain area.
Domain services are pure transformations and never perform I/O
(the clients layer owns network access).

Domains:
- metadata: $metadata parsing into a version-agnostic schema model
- query: query URL compilation and response normalization
"""
