"""Input loaders for keywords, SERP exports and clustering params."""

from .keyword_io import (
    load_keywords_from_csv,
    load_params,
    load_serp_results_csv,
    save_params,
)

__all__ = [
    "load_keywords_from_csv",
    "load_serp_results_csv",
    "load_params",
    "save_params",
]
