"""orderdesk - order pricing and status transition core for the back-office console."""

__version__ = "0.1.0"
