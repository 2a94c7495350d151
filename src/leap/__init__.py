"""LEAP Survey — survey administration and live analytics backend.

Collects Likert/NPS responses for the three assessment modules of a
client campaign, serves aggregated analytics, and pushes "a response
arrived" hints to open dashboards over Socket.IO and Server-Sent Events.
"""

__version__ = "0.1.0"
