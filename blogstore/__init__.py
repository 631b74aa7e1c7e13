"""Blog content repository: accounts, articles and comments over a record store."""

from .core.blog import Blog
from .core.errors import BlogError, BlogErrors, ErrorKind

__all__ = ['Blog', 'BlogError', 'BlogErrors', 'ErrorKind']
