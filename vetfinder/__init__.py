"""Emergency veterinary clinic discovery around a postal code."""

__version__ = "0.1.0"
