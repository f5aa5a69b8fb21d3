"""
Persistence package for loading event records from a client event source.

Architecture:
- Filter descriptors resolved by an ordered list of strategies
- Placeholders rendered from the current instant before dispatch
- Failures surfaced as DataSourceError
"""

from .source import EventSource, FilterDescriptors, Placeholder, substitute

__all__ = ["EventSource", "FilterDescriptors", "Placeholder", "substitute"]
