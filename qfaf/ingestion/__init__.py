"""Input loading for the QFAF projector."""

from qfaf.ingestion.manual import load_overrides, load_profile, load_settings

__all__ = ["load_overrides", "load_profile", "load_settings"]
