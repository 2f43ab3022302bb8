"""ESPN provider."""

from sportsoracle.providers.espn.client import ESPNClient

__all__ = ["ESPNClient"]
