import contextlib
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from databases import Database
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from app import config
from larder.errors import ErrorKind, LarderError
from larder.mealdb import MealDBClient, mealdb_client_factory
from larder.recipe_book import RecipeBook
from larder.repository import SQLiteOfflineStore


logger = logging.getLogger(__name__)


STATUS_BY_KIND = {
    ErrorKind.not_found: 404,
    ErrorKind.empty_result: 404,
    ErrorKind.connectivity: 503,
    ErrorKind.storage_unavailable: 503,
    ErrorKind.timeout: 504,
}


def error_response(error: LarderError) -> JSONResponse:
    return JSONResponse(
        {
            "error": {
                "kind": error.kind.value,
                "message": error.describe(),
                "retry": True,
            }
        },
        status_code=STATUS_BY_KIND.get(error.kind, 502),
    )


def aJSONResponse(route: Callable[..., Awaitable[Any]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        try:
            resp = await route(*args, **kwargs)
        except LarderError as e:
            logger.info("%s -> %s", route.__name__, e.kind.value)
            return error_response(e)
        if not isinstance(resp, tuple):
            payload, code = resp, 200
        else:
            payload, code = resp
        if payload is None:
            return Response(status_code=code)
        return JSONResponse(payload, status_code=code)

    return wrapper


def book(request: Request) -> RecipeBook:
    return request.app.state.book


@aJSONResponse
async def categories(request: Request) -> list[dict[str, str]]:
    return [c.to_dict() for c in await book(request).categories()]


@aJSONResponse
async def category_recipes(request: Request) -> dict[str, Any]:
    page = await book(request).fetch_page(request.path_params["name"])
    return page.to_dict()


@aJSONResponse
async def category_next(request: Request) -> dict[str, Any]:
    page = await book(request).load_next_page(request.path_params["name"])
    return page.to_dict()


@aJSONResponse
async def category_refresh(request: Request) -> dict[str, Any]:
    page = await book(request).refresh(request.path_params["name"])
    return page.to_dict()


@aJSONResponse
async def category_membership(request: Request) -> dict[str, Any]:
    page = await book(request).refresh_membership(request.path_params["name"])
    return page.to_dict()


@aJSONResponse
async def recipe_detail(request: Request) -> dict[str, Any]:
    resolved = await book(request).fetch_recipe(request.path_params["id"])
    return resolved.to_dict()


@aJSONResponse
async def recipe_favorite(request: Request) -> dict[str, Any]:
    id = request.path_params["id"]
    is_favorite = await book(request).toggle_favorite(id)
    return {"id": id, "is_favorite": is_favorite}


async def favorites(request: Request) -> Response:
    match request.method.lower():
        case "get":
            return await list_favorites(request)
        case "delete":
            return await clear_favorites(request)
        case _:
            raise ValueError("Unsupported method.")


@aJSONResponse
async def list_favorites(request: Request) -> list[dict[str, Any]]:
    return [s.to_dict() for s in await book(request).list_favorites()]


@aJSONResponse
async def clear_favorites(request: Request) -> tuple[None, int]:
    await book(request).clear_favorites()
    return None, 204


@aJSONResponse
async def favorites_count(request: Request) -> dict[str, int]:
    return {"count": await book(request).favorites_count()}


@aJSONResponse
async def remove_favorite(request: Request) -> tuple[None, int]:
    await book(request).remove_favorite(request.path_params["id"])
    return None, 204


def create_app(
    *,
    recipe_book: RecipeBook | None = None,
    database: Database | None = None,
    cfg: config.Config | None = None,
) -> Starlette:
    cfg = config.Config() if cfg is None else cfg
    if recipe_book is None:
        database = Database(cfg.db_url) if database is None else database
        recipe_book = RecipeBook(
            source=MealDBClient(
                mealdb_client_factory(cfg.mealdb_base_url, cfg.request_timeout)
            ),
            store=SQLiteOfflineStore(database),
            page_size=cfg.page_size,
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        if database is not None:
            await database.connect()
            store = recipe_book.store
            if isinstance(store, SQLiteOfflineStore):
                await store.create()
        yield
        recipe_book.close()
        if isinstance(recipe_book.source, MealDBClient):
            await recipe_book.source.aclose()
        if database is not None:
            await database.disconnect()

    app = Starlette(
        debug=cfg.env == config.Env.local,
        routes=[
            Route("/categories", categories),
            Route("/categories/{name}/recipes", category_recipes),
            Route("/categories/{name}/next", category_next, methods=["POST"]),
            Route("/categories/{name}/refresh", category_refresh, methods=["POST"]),
            Route(
                "/categories/{name}/membership",
                category_membership,
                methods=["POST"],
            ),
            Route("/recipes/{id}", recipe_detail),
            Route("/recipes/{id}/favorite", recipe_favorite, methods=["POST"]),
            Route("/favorites", favorites, methods=["GET", "DELETE"]),
            Route("/favorites/count", favorites_count),
            Route("/favorites/{id}", remove_favorite, methods=["DELETE"]),
        ],
        lifespan=lifespan,
    )
    app.state.book = recipe_book
    return app
