"""TowerWatch — incident lifecycle store and performance metrics for security operations."""

__version__ = "0.4.0"
