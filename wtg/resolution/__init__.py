"""Query resolution and tag summaries."""

from wtg.resolution.engine import resolve, resolve_with_timeout
from wtg.resolution.tag_summary import summarize_tag

__all__ = ["resolve", "resolve_with_timeout", "summarize_tag"]
