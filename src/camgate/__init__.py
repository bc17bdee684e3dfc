"""camgate - authenticated browser for a date-partitioned camera bucket."""

__version__ = "0.1.0"
