"""Community hub state: communities, add-ons, label access control, accounts and a change log."""

__version__ = "0.1.0"