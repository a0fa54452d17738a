"""SerpAPI Google web search helpers for the park verification job."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from serpapi import GoogleSearch

from . import config

logger = logging.getLogger(__name__)


class SerpError(RuntimeError):
    pass


def build_search_params(query: str, api_key: str) -> Dict[str, Any]:
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")
    return {
        "engine": "google",
        "q": query.strip(),
        "hl": "en",
        "gl": "sg",
        "api_key": api_key,
    }


def search_google(query: str, api_key: str) -> Dict[str, Any]:
    """Run one Google search through SerpAPI and return the raw JSON."""
    params = build_search_params(query, api_key)
    logger.info("Calling SerpAPI for query=%s", query)
    data = GoogleSearch(params).get_dict()
    if not data:
        raise SerpError("SerpAPI returned an empty payload.")
    if "error" in data:
        raise SerpError(f"SerpAPI returned an error response: {data.get('error')}")
    return data


def pick_evidence(serp_json: Dict[str, Any]) -> List[Dict[str, str]]:
    """Top organic title/snippet pairs plus the answer box, if any."""
    parts: List[Dict[str, str]] = []
    organic = serp_json.get("organic_results") or []
    for result in organic[: config.SERP_ORGANIC_KEEP]:
        if not isinstance(result, dict):
            continue
        title = str(result.get("title") or "")
        snippet = str(result.get("snippet") or "")
        combined = f"{title} — {snippet}".strip(" —")
        if combined:
            parts.append({"kind": "organic", "text": combined, "link": str(result.get("link") or "")})

    answer_box = serp_json.get("answer_box")
    if answer_box:
        parts.append({"kind": "answer_box", "text": json.dumps(answer_box, ensure_ascii=False), "link": ""})
    return parts


def top_link(serp_json: Dict[str, Any]) -> str:
    organic = serp_json.get("organic_results") or []
    if organic and isinstance(organic[0], dict):
        return str(organic[0].get("link") or "")
    return ""
