import os, re, json, asyncio, argparse, logging, sys
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import httpx
import pandas as pd
from dotenv import load_dotenv
from tqdm import tqdm

from .enrich import fetch_profile
from .errors import BatchAbortedError, ConfigurationError
from .gemini_client import TIMEOUT
from .history import FileStorage, HistoryStore
from .insights import primary_contact
from .schema import apply_crm_defaults

load_dotenv()
logger = logging.getLogger(__name__)

# Project paths
ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
HISTORY_DIR = os.environ.get("HISTORY_DIR", str(DATA_DIR))
OUTPUT_DIR = os.environ.get("OUTPUT_DIR", str(DATA_DIR / "output"))

BATCH_LIMIT = 20
DEFAULT_CITY = "España"
# Last separator wins so "Bar Pepe, Calle Mayor 3, Madrid" keeps the street in the name
_SEPARATOR = re.compile(r",|\s+-\s+|\s+—\s+")

Fetch = Callable[[str, str], Awaitable[dict]]


@dataclass
class BatchProgress:
    current: int
    total: int
    profile: dict


def split_target(line: str) -> tuple[str, str | None]:
    """Split "name, city" / "name - city" / "name — city" into its parts."""
    line = (line or "").strip()
    matches = list(_SEPARATOR.finditer(line))
    if not matches:
        return line, None
    last = matches[-1]
    name = line[: last.start()].strip()
    city = line[last.end():].strip()
    if not name:
        return city, None
    return name, city or None


def parse_batch_text(text: str, limit: int = BATCH_LIMIT) -> list[dict]:
    """One entry per non-empty line, at most `limit`.

    Lines are kept whole; resolve_entries splits off the inline city, so a
    name is never split twice.
    """
    lines = [ln.strip() for ln in (text or "").splitlines() if ln.strip()]
    return [{"name": line, "city": None} for line in lines[:limit]]


def resolve_entries(entries: list[dict], fallback_city: str | None = None) -> list[tuple[str, str]]:
    """Resolve each entry to (name, city): inline city > entry city > fallback > España."""
    fallback = (fallback_city or "").strip() or DEFAULT_CITY
    resolved = []
    for entry in entries:
        name, inline_city = split_target(entry.get("name") or "")
        explicit = (entry.get("city") or "").strip()
        resolved.append((name, inline_city or explicit or fallback))
    return resolved


async def run_batch(
    entries: list[dict],
    fallback_city: str | None = None,
    *,
    store: HistoryStore,
    fetch: Fetch | None = None,
    stop: asyncio.Event | None = None,
) -> AsyncIterator[BatchProgress]:
    """Fetch every entry one after another, yielding progress after each success.

    Each profile is upserted into `store` before its progress event is
    yielded, so earlier results survive a later failure. The first failing
    entry ends the batch with BatchAbortedError. Setting `stop` ends the
    batch quietly before the next fetch.
    """
    fetch = fetch or fetch_profile
    targets = resolve_entries(entries, fallback_city)
    total = len(targets)
    for i, (name, city) in enumerate(targets, start=1):
        if stop is not None and stop.is_set():
            logger.info("Batch stopped after %s/%s entries", i - 1, total)
            return
        logger.info("Batch entry %s/%s: %s (%s)", i, total, name, city)
        try:
            profile = await fetch(name, city)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("Batch aborted at entry %s/%s (%s): %s", i, total, name, e)
            raise BatchAbortedError(i, name, i - 1, total, e) from e
        profile = store.upsert(apply_crm_defaults(profile))
        yield BatchProgress(current=i, total=total, profile=profile)


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Map assorted CRM headers to the expected columns: name, city."""
    df = df.rename(columns={c: c.strip() for c in df.columns})
    name_col = city_col = None
    for col in df.columns:
        low = col.lower()
        if name_col is None and low in {"name", "businessname", "business_name", "nombre", "negocio", "empresa"}:
            name_col = col
        if city_col is None and low in {"city", "ciudad", "localidad", "municipio", "población", "poblacion"}:
            city_col = col
    if name_col is None:
        raise ValueError("Unsupported CSV headers. Provide a 'name' column (or 'nombre'/'negocio') and optionally 'city'.")
    out = pd.DataFrame()
    out["name"] = df[name_col].astype(str).str.strip()
    out["city"] = df[city_col].astype(str).str.strip() if city_col else ""
    return out[out["name"] != ""]


def read_input(path: str) -> list[dict]:
    if path.lower().endswith(".csv"):
        df = _normalize_columns(pd.read_csv(path, dtype=str, keep_default_na=False))
        return [{"name": r["name"], "city": r["city"] or None} for r in df.to_dict(orient="records")][:BATCH_LIMIT]
    with open(path, encoding="utf-8") as f:
        return parse_batch_text(f.read())


def profiles_to_frame(profiles: list[dict]) -> pd.DataFrame:
    """One flat row per profile for spreadsheet export."""
    rows = []
    for p in profiles:
        analysis = p.get("honeiAnalysis") or {}
        ops = p.get("operationalInfo") or {}
        c1 = primary_contact(p) or {}
        emails = p.get("suggestedEmails") or []
        e1 = emails[0] if emails else {}
        direct = p.get("directContacts") or {}
        rows.append({
            "businessName": p.get("businessName"),
            "city": p.get("city"),
            "fullAddress": p.get("fullAddress"),
            "fitScore": analysis.get("fitScore"),
            "fitLabel": analysis.get("fitLabel"),
            "estimatedVolume": p.get("estimatedVolume"),
            "crmStatus": p.get("crmStatus"),
            "nextAction": p.get("nextAction"),
            "outreachStatus": p.get("outreachStatus"),
            "notes": p.get("notes"),
            "contact_1_name": c1.get("name"),
            "contact_1_role": c1.get("role"),
            "contact_1_area": c1.get("area"),
            "contact_1_confidence": c1.get("confidence"),
            "email": direct.get("email") or e1.get("email"),
            "email_status": e1.get("status"),
            "email_bounceRisk": e1.get("bounceRisk"),
            "phone": direct.get("phone"),
            "paymentMethods": "; ".join(ops.get("paymentMethods") or []),
            "techStack": "; ".join(f"{t.get('category')}: {t.get('provider')}" for t in p.get("techStack") or []),
            "painPoints": "; ".join(p.get("painPoints") or []),
            "source_count": len(p.get("googleSearchSources") or []),
        })
    return pd.DataFrame(rows)


async def run(input_path: str, fallback_city: str | None, history_dir: str, output_dir: str) -> int:
    entries = read_input(input_path)
    if not entries:
        print(f"No targets found in {input_path}")
        return 1

    store = HistoryStore(FileStorage(history_dir)).load()
    results: list[dict] = []
    last = None
    timeout = httpx.Timeout(TIMEOUT, connect=TIMEOUT)
    async with httpx.AsyncClient(timeout=timeout) as client:
        fetch = partial(fetch_profile, client=client)
        with tqdm(total=len(entries), desc="Researching") as bar:
            try:
                async for event in run_batch(entries, fallback_city, store=store, fetch=fetch):
                    results.append(event.profile)
                    last = event
                    bar.update(1)
            except BatchAbortedError as e:
                bar.close()
                done = f"{last.current}/{last.total}" if last else f"0/{len(entries)}"
                print(f"Error: {e}\nProcessed {done} before stopping; completed profiles are saved in history.")
                return 1
            finally:
                if results:
                    _write_outputs(results, input_path, output_dir)

    return 0


def _write_outputs(results: list[dict], input_path: str, output_dir: str) -> None:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    in_stem = os.path.splitext(os.path.basename(input_path))[0]
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    ndjson_path = out_dir / f"{in_stem}__{ts}.ndjson"
    csv_path = out_dir / f"{in_stem}__{ts}.csv"
    with open(ndjson_path, "w", encoding="utf-8") as f:
        for r in results:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
    profiles_to_frame(results).to_csv(csv_path, index=False)
    print(f"Wrote {ndjson_path} and {csv_path}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hap-batch",
        description="Research a list of hospitality businesses, one line (or CSV row) per target.",
    )
    parser.add_argument("--input", required=True, help="Text file ('name[, city]' per line) or CSV with name/city columns")
    parser.add_argument("--city", default="", help=f"Fallback city for entries without one (default: {DEFAULT_CITY})")
    parser.add_argument("--history-dir", default=HISTORY_DIR, help="Directory holding the history file")
    parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Directory for the NDJSON/CSV batch outputs")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return asyncio.run(run(args.input, args.city, args.history_dir, args.output_dir))
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
