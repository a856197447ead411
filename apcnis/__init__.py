"""Client for the apcupsd Network Information Server (NIS)."""

__version__ = "1.0.0"
__all__ = ["client", "nis", "status"]