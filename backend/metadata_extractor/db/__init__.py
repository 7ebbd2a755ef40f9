"""In-memory store module initialization"""
from .usage_store import UsageStore

__all__ = ["UsageStore"]
