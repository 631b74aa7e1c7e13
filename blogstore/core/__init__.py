"""
Record store engine - schema index, stores, integrity checks, queries and facade.
"""

# Package initialization for core module
from .blog import Blog
from .errors import BlogError, BlogErrors, ErrorKind, SchemaError
from .integrity import ReferentialIntegrity, BadReference, BlockedByReference
from .schema import FieldSpec, Record, SchemaIndex
from .store import IRecordStore, InMemoryRecordStore, SQLiteRecordStore
from .validator import Validator

__all__ = [
    'Blog',
    'BlogError',
    'BlogErrors',
    'ErrorKind',
    'SchemaError',
    'ReferentialIntegrity',
    'BadReference',
    'BlockedByReference',
    'FieldSpec',
    'Record',
    'SchemaIndex',
    'IRecordStore',
    'InMemoryRecordStore',
    'SQLiteRecordStore',
    'Validator'
]
