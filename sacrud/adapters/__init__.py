from .base import ContextAdapter, RequestContext, SimpleAdapter

__all__ = ("ContextAdapter", "RequestContext", "SimpleAdapter")
