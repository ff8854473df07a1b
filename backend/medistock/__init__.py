"""MediStock - pharmacy inventory, sales and invoicing backend."""

__version__ = "0.1.0"
