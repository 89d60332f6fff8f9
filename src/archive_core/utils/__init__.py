"""Shared utilities."""

from archive_core.utils.json_serializers import json_serializer

__all__ = ["json_serializer"]
