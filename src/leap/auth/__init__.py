"""Authentication.

Learn: There are no user accounts in this service. Dashboards present a
JWT minted by the customer portal (or `leap token` in development); the
token's `company_id` claim is the tenant boundary for Socket.IO rooms
and, when enabled, for the push stream.
"""
