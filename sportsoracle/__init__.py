"""sports-oracle: ESPN data acquisition, caching and league statistics."""

__version__ = "0.1.0"
