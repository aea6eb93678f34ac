def build_stream_url(embed_base_url: str, movie_id: int) -> str:
    """Embed URL for a TMDB movie id, e.g. https://vidsrc.xyz/embed/movie/550."""
    return f"{embed_base_url.rstrip('/')}/movie/{movie_id}"
