# app/config.py
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_DATABASE_URL = "sqlite:///./studygraph.db"
GENAI_ENDPOINT = "https://genai.rcac.purdue.edu/api/chat/completions"
MAPS_ENDPOINT = "https://maps.googleapis.com/maps/api/distancematrix/json"


class Settings(BaseModel):
    database_url: str = DEFAULT_DATABASE_URL
    genai_api_key: Optional[str] = None
    genai_endpoint: str = GENAI_ENDPOINT
    genai_model: str = "llama3.1:latest"
    maps_api_key: Optional[str] = None
    maps_endpoint: str = MAPS_ENDPOINT
    external_timeout_secs: float = 10.0
    upload_dir: str = "./uploads"


def _optional(name: str) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()


def load_settings() -> Settings:
    """
    Build Settings from the environment (and .env, when present).

    API keys are optional: leaving them unset switches the planner to its
    mock study spaces and mock distances.
    """
    load_dotenv()
    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        genai_api_key=_optional("GENAI_API_KEY"),
        genai_endpoint=os.getenv("GENAI_ENDPOINT", GENAI_ENDPOINT),
        genai_model=os.getenv("GENAI_MODEL", "llama3.1:latest"),
        maps_api_key=_optional("GOOGLE_MAPS_API_KEY"),
        maps_endpoint=os.getenv("MAPS_ENDPOINT", MAPS_ENDPOINT),
        external_timeout_secs=float(os.getenv("EXTERNAL_TIMEOUT_SECS", "10")),
        upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
    )
