import os, logging, httpx
from dotenv import load_dotenv

from .errors import ConfigurationError, UpstreamError

load_dotenv()
logger = logging.getLogger(__name__)

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
TIMEOUT = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))

GENERATION_CONFIG = {
    "temperature": 1,
    "topP": 0.95,
    "maxOutputTokens": 8000,
}


def get_api_key() -> str:
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    if not api_key:
        raise ConfigurationError("GEMINI_API_KEY is not configured")
    return api_key


def build_payload(system_prompt: str, user_prompt: str, search: bool = True) -> dict:
    payload = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
        "generationConfig": dict(GENERATION_CONFIG),
    }
    if search:
        payload["tools"] = [{"googleSearch": {}}]
    return payload


async def create_response(payload: dict, client: httpx.AsyncClient | None = None) -> dict:
    """POST a generateContent request and return the decoded JSON body.

    Transport failures and timeouts surface as UpstreamError with status None.
    There is no retry.
    """
    api_key = get_api_key()
    url = f"{GEMINI_BASE_URL}/models/{GEMINI_MODEL}:generateContent"
    headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=httpx.Timeout(TIMEOUT, connect=TIMEOUT))
    try:
        try:
            r = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            logger.error("Gemini request timed out after %ss", TIMEOUT)
            raise UpstreamError(None, str(e) or "timeout", f"Search backend timed out after {TIMEOUT}s") from e
        except httpx.HTTPError as e:
            logger.error("Gemini request failed: %s", e)
            raise UpstreamError(None, str(e)) from e

        if r.status_code < 200 or r.status_code >= 300:
            logger.error("Gemini API Error %s: %s", r.status_code, r.text[:1000])
            raise UpstreamError(r.status_code, r.text)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(r.status_code, r.text, "Search backend returned a non-JSON body") from e
    finally:
        if own_client:
            await client.aclose()


def _first_candidate(resp_json: dict) -> dict:
    candidates = resp_json.get("candidates") or []
    if candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def extract_output_text(resp_json: dict) -> str:
    # Grounded answers can arrive split across several parts
    content = _first_candidate(resp_json).get("content") or {}
    texts = [p.get("text") or "" for p in content.get("parts") or [] if isinstance(p, dict)]
    return "".join(texts)


def extract_sources(resp_json: dict) -> list[dict]:
    metadata = _first_candidate(resp_json).get("groundingMetadata") or {}
    sources = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if isinstance(web, dict) and web.get("uri") and web.get("title"):
            sources.append({"uri": web["uri"], "title": web["title"]})
    return sources
