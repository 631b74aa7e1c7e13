"""
REST API over the blog facade.

Every category is served under /{category}; records are addressed as
/{category}/{id}. Failed operations answer with an ErrorResponse whose
status follows the kind of the first error.
"""

from fastapi import FastAPI, APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Dict, Any

from util.logging import logger

from .schemas import (
    CreatedResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    IndexResponse,
    Link,
    MetaResponse,
    RemovedResponse,
)
from ..core.blog import Blog
from ..core.config import DEFAULT_INDEX, VERSION, debug_enabled
from ..core.errors import BlogErrors, ErrorKind
from ..core.validator import COUNT_FIELD, INDEX_FIELD

ERROR_STATUS = {
    ErrorKind.BAD_CATEGORY: 404,
    ErrorKind.BAD_ID: 404,
    ErrorKind.EXISTS: 409,
    ErrorKind.DB: 500,
}
BAD_REQUEST = 400

# Query parameters whose repeated values are joined into one token list
LIST_PARAMS = ("keywords", "roles")

router = APIRouter()


def get_blog(request: Request) -> Blog:
    return request.app.state.blog


def error_status(errors: BlogErrors) -> int:
    return ERROR_STATUS.get(errors.first_kind, BAD_REQUEST)


def _record_link(request: Request, category: str, record_id: str) -> Link:
    href = str(request.url_for("record", category=category, record_id=record_id))
    return Link(rel="self", name="self", href=href)


def _with_links(request: Request, category: str, record: Dict[str, Any]) -> Dict[str, Any]:
    links = [_record_link(request, category, record["id"]).model_dump()]
    return {**record, "links": links}


def _find_params(request: Request) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for name in request.query_params.keys():
        values = request.query_params.getlist(name)
        params[name] = ",".join(values) if name in LIST_PARAMS else values[-1]
    return params


@router.get("/health", response_model=HealthResponse)
def health_check_endpoint(blog: Blog = Depends(get_blog)):
    """Check store health."""
    store_health = blog.store.health_check()
    counts = {category: blog.store.count(category) for category in blog.schema.categories}

    return HealthResponse(
        status="healthy" if store_health else "unhealthy",
        version=VERSION,
        backend=blog.store.backend,
        store_health=store_health,
        counts=counts
    )


@router.get("/", response_model=IndexResponse)
def index_endpoint(request: Request, blog: Blog = Depends(get_blog)):
    links = [
        Link(rel="self", name="self", href=str(request.url)),
        Link(rel="describedby", name="meta", href=str(request.url_for("meta"))),
    ]
    for category in blog.schema.categories:
        links.append(Link(rel="collection", name=category,
                          href=str(request.url_for("collection", category=category))))
    return IndexResponse(links=links)


@router.get("/meta", response_model=MetaResponse, name="meta")
def meta_endpoint(request: Request, blog: Blog = Depends(get_blog)):
    return MetaResponse(
        categories=blog.meta(),
        links=[Link(rel="self", name="self", href=str(request.url))]
    )


@router.get("/{category}", name="collection")
def find_endpoint(category: str, request: Request, blog: Blog = Depends(get_blog)):
    """Find records of a category; query parameters are the find criteria.

    Responds with the records, a self link, and next/prev links (plus their
    _index values) when there may be further pages.
    """
    params = _find_params(request)
    criteria = blog.validator.validate(category, "find", params)
    records = blog.find(category, params)

    index = criteria.get(INDEX_FIELD, DEFAULT_INDEX)
    count = criteria.get(COUNT_FIELD, blog.default_count)
    result: Dict[str, Any] = {
        category: [_with_links(request, category, r) for r in records],
    }
    links: List[Link] = [Link(rel="self", name="self", href=str(request.url))]
    if len(records) >= count:
        result["next"] = index + count
        links.append(Link(rel="next", name="next",
                          href=str(request.url.include_query_params(_index=result["next"]))))
    if index > 0:
        result["prev"] = max(index - count, 0)
        links.append(Link(rel="prev", name="prev",
                          href=str(request.url.include_query_params(_index=result["prev"]))))
    result["links"] = [link.model_dump() for link in links]
    return result


@router.get("/{category}/{record_id}", name="record")
def get_record_endpoint(category: str, record_id: str, request: Request,
                        blog: Blog = Depends(get_blog)):
    records = blog.find(category, {"id": record_id})
    return {category: [_with_links(request, category, r) for r in records]}


@router.post("/{category}", status_code=201, response_model=CreatedResponse)
def create_endpoint(category: str, request: Request, spec: Dict[str, Any] = Body(...),
                    blog: Blog = Depends(get_blog)):
    record_id = blog.create(category, spec)
    link = _record_link(request, category, record_id)
    body = CreatedResponse(id=record_id, links=[link])
    return JSONResponse(status_code=201, content=body.model_dump(), headers={"Location": link.href})


@router.patch("/{category}/{record_id}")
def update_endpoint(category: str, record_id: str, request: Request,
                    patch: Dict[str, Any] = Body(...), blog: Blog = Depends(get_blog)):
    spec = dict(patch)
    spec["id"] = record_id
    record = blog.update(category, spec)
    return {category: [_with_links(request, category, record)]}


@router.delete("/{category}/{record_id}", response_model=RemovedResponse)
def remove_endpoint(category: str, record_id: str, blog: Blog = Depends(get_blog)):
    blog.remove(category, {"id": record_id})
    return RemovedResponse(success=True, message=f"removed {category} {record_id}")


async def blog_errors_handler(request: Request, exc: BlogErrors):
    """Map typed blog errors to an HTTP error response."""
    body = ErrorResponse(
        code=exc.first_kind.value,
        message="; ".join(exc.messages()),
        errors=[ErrorDetail(kind=e.kind.value, message=e.message) for e in exc.errors],
    )
    return JSONResponse(status_code=error_status(exc), content=body.model_dump(exclude_none=True))


async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    body = ErrorResponse(code="SERVER_ERROR", message="Internal server error")
    if debug_enabled():
        body.debug = str(exc)
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def create_app(blog: Blog = None) -> FastAPI:
    """Build the FastAPI application around a blog (the configured one by default)."""
    app = FastAPI(
        title="Blog Store API",
        version=VERSION,
        description="Accounts, articles and comments over a referentially checked record store",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None
    )
    app.state.blog = blog or Blog.make()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location"],
    )
    app.add_exception_handler(BlogErrors, blog_errors_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)
    return app


app = create_app()
