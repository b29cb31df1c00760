"""
Articles Service package for Civic Sights.

This package serves the news-article catalog behind the API gateway:

- app.main: API surface (listings, detail, CRUD, health) and lifecycle.
- app.gateway: Gateway-only request filter and premium role gate.
- app.service: Orchestration of filters, pagination and detail lookups.
- app.persistence: PostgreSQL tier, in-memory fallback tier, and the
  tiered store that chooses between them.
- app.models: Category set, domain dataclasses and wire models.

Guidelines:
- Importing the package must not open connections; IO starts in the
  startup hook.
- Stores are constructed explicitly and passed into the service; there is
  no module-level state.
"""
