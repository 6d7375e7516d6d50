"""
Loading clustering inputs from files.

- :func:`load_keywords_from_csv` reads one row per keyword, with SERP URLs
  and titles packed into delimited columns.
- :func:`load_serp_results_csv` reads long-format SERP exports
  (``keyword, position, url[, title]``), keeping the top 10 by position.
- :func:`load_params` reads :class:`~serp_clusters.types.ClusteringParams`
  from YAML or JSON.

Malformed rows are skipped with a warning; keywords without SERP data are
kept with empty URL lists (they simply never merge on overlap).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import yaml

from serp_clusters.DEFAULT_CONSTS import TOP_N_RESULTS
from serp_clusters.exceptions import ValidationError
from serp_clusters.types import ClusteringParams, Keyword

LOGGER = logging.getLogger(__name__)

KEYWORD_COLUMN_ALIASES = ["keyword", "keywords", "query", "queries", "text"]
VOLUME_COLUMN_ALIASES = ["search_volume", "volume", "search volume"]


def _find_column(columns: List[str], aliases: List[str]) -> Optional[str]:
    lowered = {str(col).strip().lower(): col for col in columns}
    for alias in aliases:
        if alias in lowered:
            return lowered[alias]
    return None


def _split_cell(value: Any, delimiter: str) -> List[str]:
    if pd.isna(value):
        return []
    return [part.strip() for part in str(value).split(delimiter) if part.strip()]


def _number_or_none(value: Any) -> Optional[float]:
    if pd.isna(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def load_keywords_from_csv(
    csv_path: Union[str, Path],
    keyword_column: Optional[str] = None,
    url_column: str = "serp_urls",
    title_column: str = "serp_titles",
    delimiter: str = "|",
) -> List[Keyword]:
    """
    Load keywords from a one-row-per-keyword CSV file.

    Parameters
    ----------
    csv_path : str or Path
        Path to the CSV file
    keyword_column : Optional[str]
        Keyword text column; detected from common names
        (``keyword``, ``query``, ...) if None
    url_column, title_column : str
        Columns holding ``delimiter``-separated SERP URLs/titles; optional
    delimiter : str
        Separator inside the URL/title cells

    Returns
    -------
    List[Keyword]
        Keywords in file order. Optional ``id``, ``search_volume`` (or
        ``volume``) and ``difficulty`` columns are used when present.

    Raises
    ------
    ValidationError
        If no keyword column can be found
    """
    LOGGER.info(f"Loading keywords from {csv_path}")
    # Only empty cells are missing; "NA", "null" and "nan" are real keywords
    df = pd.read_csv(csv_path, keep_default_na=False, na_values=[""])
    columns = list(df.columns)

    text_col = keyword_column or _find_column(columns, KEYWORD_COLUMN_ALIASES)
    if text_col is None or text_col not in df.columns:
        raise ValidationError(f"No keyword column found in {csv_path}: {columns}")
    volume_col = _find_column(columns, VOLUME_COLUMN_ALIASES)
    difficulty_col = _find_column(columns, ["difficulty", "kd"])
    id_col = _find_column(columns, ["id", "keyword_id"])

    keywords = []
    for idx, row in df.iterrows():
        text = row[text_col]
        if pd.isna(text) or not str(text).strip():
            LOGGER.warning(f"Skipping row {idx}: empty keyword")
            continue

        keywords.append(
            Keyword(
                text=str(text).strip(),
                id=None if id_col is None or pd.isna(row[id_col]) else str(row[id_col]),
                serp_urls=_split_cell(row[url_column], delimiter) if url_column in df.columns else [],
                serp_titles=_split_cell(row[title_column], delimiter) if title_column in df.columns else [],
                search_volume=_number_or_none(row[volume_col]) if volume_col else None,
                difficulty=_number_or_none(row[difficulty_col]) if difficulty_col else None,
            )
        )

    LOGGER.info(f"Loaded {len(keywords)} keywords from {len(df)} rows")
    return keywords


def load_serp_results_csv(csv_path: Union[str, Path]) -> List[Keyword]:
    """
    Load keywords from a long-format SERP export.

    Expects one row per result with columns ``keyword``, ``position`` and
    ``url`` (and optionally ``title``). Only positions 1-10 are kept, ordered
    by position. Keywords appear in order of first occurrence.

    Raises
    ------
    ValidationError
        If a required column is missing
    """
    LOGGER.info(f"Loading SERP results from {csv_path}")
    df = pd.read_csv(csv_path, keep_default_na=False, na_values=[""])
    df.columns = [str(col).strip().lower() for col in df.columns]

    missing = {"keyword", "position", "url"} - set(df.columns)
    if missing:
        raise ValidationError(f"SERP file {csv_path} is missing columns: {sorted(missing)}")

    df["position"] = pd.to_numeric(df["position"], errors="coerce")
    invalid = df["keyword"].isna() | df["url"].isna() | df["position"].isna()
    if invalid.any():
        LOGGER.warning(f"Skipping {int(invalid.sum())} malformed SERP rows")
    df = df[~invalid]
    df = df[(df["position"] >= 1) & (df["position"] <= TOP_N_RESULTS)].copy()
    df["keyword"] = df["keyword"].astype(str).str.strip()

    has_titles = "title" in df.columns
    keywords = []
    # sort=False keeps first-occurrence order of keywords
    for text, group in df.groupby("keyword", sort=False):
        group = group.sort_values("position", kind="stable")
        keywords.append(
            Keyword(
                text=text,
                serp_urls=group["url"].astype(str).str.strip().tolist(),
                serp_titles=group["title"].fillna("").astype(str).tolist() if has_titles else [],
            )
        )

    LOGGER.info(f"Loaded SERP results for {len(keywords)} keywords")
    return keywords


def load_params(path: Union[str, Path]) -> ClusteringParams:
    """
    Load clustering parameters from a YAML or JSON file.

    A top-level ``clustering`` section is used if present, otherwise the
    whole document.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValidationError
        If the content is not a mapping or holds invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Params file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict) and isinstance(data.get("clustering"), dict):
        data = data["clustering"]
    if not isinstance(data, dict):
        raise ValidationError(f"Params file {path} must contain a mapping")

    params = ClusteringParams.from_dict(data)
    LOGGER.info(f"Loaded clustering params from {path}: {params.to_dict()}")
    return params


def save_params(params: ClusteringParams, path: Union[str, Path]) -> None:
    """Write clustering parameters as YAML (or JSON for a ``.json`` path)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = params.to_dict()

    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, indent=2)
        else:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
