"""Ingestion layer.

Adapters that receive device state from the hub (full-state polls and live
events) and turn it into candidate transitions.
"""

__all__: list[str] = []
