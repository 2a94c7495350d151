"""Real-time infrastructure — registry, broadcaster, and two transports.

Learn: Events flow one way, from the response write path to dashboards:
1. Submit endpoint (or the Postgres NOTIFY listener) calls RealtimeHub
2. The hub hands a DomainEvent to each transport's broadcaster
3. Each broadcaster writes to the matching connections in its registry

Two transports share the same registry/broadcaster core:
- Socket.IO (bidirectional, JWT-authenticated, room based)
- Server-Sent Events (one-way, optional survey scope)

Delivery is best-effort. Dashboards treat every event as a hint to
refetch analytics, so a lost event costs one stale refresh at most.
"""
