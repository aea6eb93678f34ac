"""Movie payloads, trimmed down from the TMDB response shapes."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MovieOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: Optional[str] = ""
    overview: Optional[str] = ""
    poster_path: Optional[str] = None
    vote_average: Optional[float] = 0.0
    release_date: Optional[str] = None
    runtime: Optional[int] = None


class MovieListOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: int = 1
    results: List[MovieOut] = []
    total_pages: int = 0
    total_results: int = 0


class StreamOut(BaseModel):
    streamUrl: str
