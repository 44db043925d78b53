"""ChefSync: budget-aware AI meal planning for Indian households."""

__version__ = "1.0.0"
