import os, logging, httpx
from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()
logger = logging.getLogger(__name__)

ABSTRACT_URL = os.getenv("ABSTRACT_EMAIL_URL", "https://emailvalidation.abstractapi.com/v1/")
TIMEOUT = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))


async def verify_email(email: str, client: httpx.AsyncClient | None = None) -> dict:
    """Classify deliverability of `email` as verified, unverified or error."""
    email = (email or "").strip()
    if not email:
        raise ValueError("email is required")
    api_key = os.getenv("ABSTRACT_EMAIL_API_KEY")
    if not api_key:
        raise ConfigurationError("ABSTRACT_EMAIL_API_KEY is not configured")

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=httpx.Timeout(TIMEOUT, connect=TIMEOUT))
    try:
        r = await client.get(ABSTRACT_URL, params={"api_key": api_key, "email": email})
        if r.status_code != 200:
            logger.error("Abstract API Error %s: %s", r.status_code, r.text[:500])
            return _error(email, f"Email verification API error (HTTP {r.status_code})")
        data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Email verification failed for %s: %s", email, e)
        return _error(email, str(e) or type(e).__name__)
    finally:
        if own_client:
            await client.aclose()

    status = data.get("deliverability") or "UNKNOWN"
    verified = status == "DELIVERABLE"
    return {
        "email": email,
        "verified": verified,
        "status": status,
        "statusDetail": "Email address is safe to send to" if verified else f"Email deliverability: {status}",
        "state": "verified" if verified else "unverified",
    }


def _error(email: str, detail: str) -> dict:
    return {"email": email, "verified": False, "status": "ERROR", "statusDetail": detail, "state": "error"}
