"""
Request and response models for the blog REST API.
"""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime


class Link(BaseModel):
    rel: str
    name: str
    href: str


class IndexResponse(BaseModel):
    links: List[Link]


class MetaResponse(BaseModel):
    categories: Dict[str, List[Dict[str, Any]]]
    links: List[Link]


class CreatedResponse(BaseModel):
    id: str
    links: List[Link]


class RemovedResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    backend: str
    store_health: bool
    counts: Dict[str, int]
    timestamp: datetime = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)


class ErrorDetail(BaseModel):
    kind: str
    message: str


class ErrorResponse(BaseModel):
    """All errors of one failed operation; code is the kind of the first."""
    code: str
    message: str
    errors: List[ErrorDetail] = []
    debug: Optional[str] = None
