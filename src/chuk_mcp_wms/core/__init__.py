"""Core WMS source, profile and request machinery."""
