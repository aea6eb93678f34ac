from typing import Any, Type, TypeVar

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ValidationError

from cineflix.api.deps import get_principal, get_settings, get_tmdb
from cineflix.core.config import Settings
from cineflix.schemas.movies import MovieListOut, MovieOut, StreamOut
from cineflix.services.stream_service import build_stream_url
from cineflix.services.tmdb import TMDBClient, TMDBError

# Every movie route needs a valid session.
router = APIRouter(prefix="/api/movies", tags=["movies"], dependencies=[Depends(get_principal)])

M = TypeVar("M", bound=BaseModel)


def _reshape(model: Type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise TMDBError(f"TMDB payload did not match {model.__name__}: {e.error_count()} error(s)")


@router.get("/trending", response_model=MovieListOut)
async def trending(page: int = Query(1, ge=1, le=500), tmdb: TMDBClient = Depends(get_tmdb)):
    return _reshape(MovieListOut, await tmdb.trending(page))


@router.get("/popular", response_model=MovieListOut)
async def popular(page: int = Query(1, ge=1, le=500), tmdb: TMDBClient = Depends(get_tmdb)):
    return _reshape(MovieListOut, await tmdb.popular(page))


@router.get("/search", response_model=MovieListOut)
async def search(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBClient = Depends(get_tmdb),
):
    return _reshape(MovieListOut, await tmdb.search(query, page))


@router.get("/{movie_id}", response_model=MovieOut)
async def details(movie_id: int, tmdb: TMDBClient = Depends(get_tmdb)):
    return _reshape(MovieOut, await tmdb.details(movie_id))


@router.get("/{movie_id}/stream", response_model=StreamOut)
async def stream(movie_id: int, settings: Settings = Depends(get_settings)):
    return {"streamUrl": build_stream_url(settings.STREAM_EMBED_BASE_URL, movie_id)}
