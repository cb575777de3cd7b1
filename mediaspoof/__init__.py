"""MediaSpoof - batch media spoofing, splitting and conversion."""

__version__ = "0.1.0"
