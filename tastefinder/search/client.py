from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..errors import ConfigurationError, InvalidResponseError, SearchFailedError
from .config import SearchConfig
from .models import QueryParams, Restaurant

logger = logging.getLogger(__name__)


def price_to_tiers(price: str) -> str:
    """Map "$".."$$$$" to Yelp's comma-joined tier list, e.g. "$$$" -> "1,2,3"."""
    return ",".join(str(i + 1) for i in range(len(price)))


def _format_radius(radius: int | float) -> str:
    if isinstance(radius, float) and radius.is_integer():
        return str(int(radius))
    return str(radius)


def build_search_params(query: QueryParams, config: SearchConfig) -> dict[str, str]:
    params = {
        "term": query.food,
        "location": query.location,
        "limit": str(config.limit),
        "sort_by": config.sort_by,
    }
    if query.price:
        params["price"] = price_to_tiers(query.price)
    # open_now=False is not "currently closed"; it just drops the filter.
    if query.open_now:
        params["open_now"] = "true"
    if query.radius is not None:
        params["radius"] = _format_radius(query.radius)
    return params


def _http_client(config: SearchConfig) -> httpx.Client:
    if config.timeout is not None:
        return httpx.Client(timeout=config.timeout)
    return httpx.Client()


def search_businesses(
    query: QueryParams,
    config: SearchConfig,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """
    Run a business search and return the provider's JSON payload untouched.

    Raises ConfigurationError without contacting Yelp when no API key is set,
    SearchFailedError on transport errors or non-success statuses and
    InvalidResponseError when the body is not a JSON object.
    """
    if not config.api_key:
        raise ConfigurationError("Yelp API key is not configured")

    params = build_search_params(query, config)
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Accept": "application/json",
    }
    logger.info("Calling Yelp search with %s", params)

    owns_client = client is None
    http = client or _http_client(config)
    try:
        response = http.get(config.search_url, params=params, headers=headers)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Yelp API error (%s): %s", exc.response.status_code, exc.response.text)
            raise SearchFailedError(
                f"Yelp API responded with status: {exc.response.status_code}",
                details=exc.response.text,
                upstream_status=exc.response.status_code,
            ) from exc
    except httpx.RequestError as exc:
        logger.warning("Yelp request failed", exc_info=True)
        raise SearchFailedError("Failed to fetch restaurant data", details=str(exc)) from exc
    finally:
        if owns_client:
            http.close()

    try:
        data = response.json()
    except ValueError as exc:
        raise InvalidResponseError("Received invalid data format from API", details=response.text) from exc

    if not isinstance(data, dict):
        raise InvalidResponseError("Received invalid data format from API")

    return data


def parse_businesses(payload: dict[str, Any]) -> list[Restaurant]:
    businesses = payload.get("businesses")
    if not isinstance(businesses, list):
        raise InvalidResponseError("Received invalid data format from API")
    try:
        return [Restaurant.model_validate(b) for b in businesses]
    except ValidationError as exc:
        raise InvalidResponseError("Received invalid data format from API", details=str(exc)) from exc


def search_restaurants(
    query: QueryParams,
    config: SearchConfig,
    client: httpx.Client | None = None,
) -> list[Restaurant]:
    """Search and map the business list. An empty list is a valid result."""
    restaurants = parse_businesses(search_businesses(query, config, client=client))
    logger.info("Yelp returned %d business(es)", len(restaurants))
    return restaurants
