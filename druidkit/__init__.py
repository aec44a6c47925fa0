"""Etcd cluster resource types, validation, scheme registration and ownership management."""

__version__ = "0.1.0"