import logging

from pydantic import ValidationError

from .schema import normalize_profile
from .prompt import SYSTEM_PROMPT, build_user_prompt
from .gemini_client import build_payload, create_response, extract_output_text, extract_sources
from .errors import EmptyResponse, MalformedResponse
from .extract import Extractor, extract_json

logger = logging.getLogger(__name__)

_EXCERPT = 500


async def fetch_profile(business_name: str, city: str, *, client=None, extractor: Extractor | None = None) -> dict:
    business_name = (business_name or "").strip()
    city = (city or "").strip()
    if not business_name or not city:
        raise ValueError("businessName and city are required")

    logger.info("Fetching profile for %s (%s)", business_name, city)
    payload = build_payload(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_user_prompt(business_name, city),
        search=True,
    )

    resp = await create_response(payload, client=client)
    text = extract_output_text(resp).strip()
    if not text:
        raise EmptyResponse()

    try:
        data = normalize_profile((extractor or extract_json)(text))
    except ValidationError as e:
        logger.warning("Profile for %s (%s) failed validation: %s", business_name, city, e)
        raise MalformedResponse(
            f"Model response does not match the profile shape ({e.error_count()} invalid field(s))",
            raw=text[:_EXCERPT],
        ) from e
    # Citations come from grounding metadata only; whatever the model wrote there is dropped
    data["googleSearchSources"] = extract_sources(resp)
    return data
