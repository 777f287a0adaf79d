"""
Trips data layer package for the TripDesk dashboard.

The data layer mediates between the view layer and the remote store:
- Entity gateway: typed REST calls against the store
- Query cache: keyed results with per-kind staleness and in-flight dedup
- Mutation coordinator: writes plus a fixed invalidation recipe

Structure:
- app.domain: Entity and parameter models.
- app.adapters: HTTP clients for the remote store.
- app.caching: Query keys and the query cache.
- app.queries: Read helpers binding keys, TTLs and fetchers.
- app.mutations: Write operations and cache invalidation.
- app.container: Composition root wiring one isolated instance.
"""
