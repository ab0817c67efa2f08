# app/planner/clients.py
# outbound calls: AI chat completions (study spaces) + distance matrix (walking distance)

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.planner.ai_parser import parse_ai_response
from app.planner.mock_data import mock_study_spaces
from app.workflow_logger import log_event

DEFAULT_CLASS_LOCATION = "Purdue campus"

LOCAL_MOCK_DISTANCE = "≈5 min walk (mocked)"
FAILED_MOCK_DISTANCE = "distance unavailable (mocked)"


def encode_uri_component(value: str) -> str:
    # same reserved set as JavaScript's encodeURIComponent
    return quote(value or "", safe="-_.!~*'()")


def maps_dir_url(origin: str, destination: str) -> str:
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={encode_uri_component(origin)}"
        f"&destination={encode_uri_component(destination)}"
    )


def build_prompt(location: str) -> str:
    return (
        f"I have a class at {location or DEFAULT_CLASS_LOCATION}, "
        "find me study spaces within a 0.25 mile radius and list pros of each location"
    )


def _message_content(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def _first_element(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    rows = payload.get("rows")
    if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
        return {}
    elements = rows[0].get("elements")
    if not isinstance(elements, list) or not elements or not isinstance(elements[0], dict):
        return {}
    return elements[0]


def _text_of(node: Any) -> Optional[str]:
    if isinstance(node, dict) and isinstance(node.get("text"), str) and node["text"]:
        return node["text"]
    return None


class AiSuggestionClient:
    """
    Asks the chat-completions endpoint for study spaces near a class location.

    Never raises for service problems: no API key, HTTP errors, bad JSON or an
    answer that parses to nothing all return mock catalog entries instead.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = "",
        model: str = "llama3.1:latest",
        http: Optional[httpx.AsyncClient] = None,
        timeout_secs: float = 10.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.http = http
        self.timeout_secs = timeout_secs
        self.rng = rng

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.endpoint)

    def _fallback(self, location: str) -> List[Dict[str, Any]]:
        return mock_study_spaces(location, self.rng)

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.http is not None:
            return await self.http.post(self.endpoint, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout_secs) as client:
            return await client.post(self.endpoint, json=body, headers=headers)

    async def fetch_study_spaces(self, location: str) -> List[Dict[str, Any]]:
        location = (location or "").strip() or DEFAULT_CLASS_LOCATION
        if not self.configured:
            return self._fallback(location)

        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_prompt(location)}],
            "stream": False,
        }
        try:
            resp = await self._post(body)
            resp.raise_for_status()
            parsed = parse_ai_response(_message_content(resp.json()))
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as ex:
            log_event(
                subject=location,
                status="warning",
                actor="planner",
                event="GenAiFallback",
                extra={"reason": type(ex).__name__, "error": str(ex)},
            )
            return self._fallback(location)

        if not parsed:
            log_event(
                subject=location,
                status="warning",
                actor="planner",
                event="GenAiFallback",
                extra={"reason": "empty_response"},
            )
            return self._fallback(location)
        return parsed


class DistanceClient:
    """
    Walking distance between two free-text places via the distance-matrix API.

    The maps deep link is always built locally, so even the mocked results
    carry a usable url.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = "",
        http: Optional[httpx.AsyncClient] = None,
        timeout_secs: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.http = http
        self.timeout_secs = timeout_secs

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.endpoint)

    async def _get(self, params: Dict[str, str]) -> httpx.Response:
        if self.http is not None:
            return await self.http.get(self.endpoint, params=params)
        async with httpx.AsyncClient(timeout=self.timeout_secs) as client:
            return await client.get(self.endpoint, params=params)

    async def fetch_distance(self, origin: str, destination: str) -> Dict[str, str]:
        url = maps_dir_url(origin, destination)
        if not self.configured:
            return {"text": LOCAL_MOCK_DISTANCE, "url": url, "source": "local-mock"}

        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "walking",
            "units": "imperial",
            "key": self.api_key or "",
        }
        try:
            resp = await self._get(params)
            resp.raise_for_status()
            element = _first_element(resp.json())
            if element.get("status") != "OK":
                raise ValueError("No distance data returned")
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as ex:
            log_event(
                subject=destination,
                status="warning",
                actor="planner",
                event="MapsFallback",
                extra={"origin": origin, "reason": type(ex).__name__},
            )
            return {"text": FAILED_MOCK_DISTANCE, "url": url, "source": "maps-mock"}

        text = _text_of(element.get("distance")) or _text_of(element.get("duration")) or "distance unavailable"
        return {"text": text, "url": url, "source": "google-maps"}
