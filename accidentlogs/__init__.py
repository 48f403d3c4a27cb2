"""Client, data model and local filtering for Procore accident logs."""

__version__ = "0.1.0"