"""Infra layer utilities (document storage)."""

from .storage import JsonDocumentManager

__all__ = ["JsonDocumentManager"]
