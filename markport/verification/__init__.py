"""Round-trip verification for markport."""

from .round_trip import round_trip_markdown, verify_round_trip

__all__ = ["round_trip_markdown", "verify_round_trip"]
