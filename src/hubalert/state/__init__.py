"""State layer.

Holds the last-known motion/contact pair per device and the pure edge
rules both ingestion paths use to derive transitions from it.
"""
