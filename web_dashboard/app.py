import asyncio
import logging

from flask import Flask, current_app, jsonify, request

from hap_intel.enrich import fetch_profile
from hap_intel.errors import BatchAbortedError, ConfigurationError, ProfileFetchError, UpstreamError
from hap_intel.history import FileStorage, HistoryStore
from hap_intel.insights import insights
from hap_intel.run_batch import BATCH_LIMIT, HISTORY_DIR, parse_batch_text, run_batch
from hap_intel.verify_email import verify_email

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["HISTORY_STORE"] = HistoryStore(FileStorage(HISTORY_DIR)).load()


def _store() -> HistoryStore:
    return current_app.config["HISTORY_STORE"]


def _error(message: str, status: int, **extra):
    return jsonify({"error": message, **extra}), status


def _fetch_status(e: ProfileFetchError) -> int:
    # Client errors from the backend are passed through, everything else is a bad gateway
    if isinstance(e, UpstreamError) and e.status is not None and 400 <= e.status < 500:
        return e.status
    return 502


@app.errorhandler(ConfigurationError)
def handle_configuration_error(e):
    logger.error("Configuration error: %s", e)
    return _error(str(e), 500)


@app.errorhandler(ValueError)
def handle_value_error(e):
    return _error(str(e), 400)


@app.errorhandler(IndexError)
def handle_index_error(e):
    return _error(str(e), 404)


@app.route('/api/business-profile', methods=['POST'])
def business_profile():
    """Research one business and add it to the history"""
    body = request.get_json(silent=True) or {}
    name = (body.get('businessName') or '').strip()
    city = (body.get('city') or '').strip()
    if not name or not city:
        return _error('businessName and city are required', 400)
    try:
        profile = asyncio.run(fetch_profile(name, city))
    except ProfileFetchError as e:
        return _error(str(e), _fetch_status(e))
    return jsonify(_store().upsert(profile))


def _batch_entries(body: dict) -> list[dict]:
    """Entries from a structured `entries` list, or one per line of `text`."""
    if 'entries' not in body:
        return parse_batch_text(body.get('text') or '')
    raw = body['entries']
    if not isinstance(raw, list) or not all(isinstance(e, dict) for e in raw):
        raise ValueError('entries must be a list of {name, city} objects')
    entries = []
    for item in raw:
        name = str(item.get('name') or '').strip()
        if name:
            entries.append({'name': name, 'city': str(item.get('city') or '').strip() or None})
    return entries[:BATCH_LIMIT]


@app.route('/api/batch', methods=['POST'])
def batch():
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return _error('JSON object body required', 400)
    entries = _batch_entries(body)
    if not entries:
        return _error('text or entries must contain at least one target', 400)

    store = _store()
    profiles = []
    progress = {'current': 0, 'total': len(entries)}

    async def consume():
        async for event in run_batch(entries, body.get('city') or '', store=store):
            profiles.append(event.profile)
            progress['current'] = event.current

    try:
        asyncio.run(consume())
    except BatchAbortedError as e:
        return _error(str(e), 502, profiles=profiles, progress=progress)
    return jsonify({'profiles': profiles, 'progress': progress})


@app.route('/api/history')
def history_list():
    status = request.args.get('status') or None
    city = request.args.get('city') or None
    return jsonify([{'index': i, 'profile': p} for i, p in _store().indexed(status=status, city=city)])


@app.route('/api/history/<int:index>', methods=['PATCH'])
def history_update(index):
    fields = request.get_json(silent=True)
    if not isinstance(fields, dict):
        return _error('JSON object body required', 400)
    return jsonify(_store().update(index, fields))


@app.route('/api/history/<int:index>', methods=['DELETE'])
def history_delete(index):
    _store().delete(index)
    return '', 204


@app.route('/api/history/<int:index>/insights')
def history_insights(index):
    sender = request.args.get('sender') or None
    return jsonify(insights(_store().get(index), sender_name=sender))


@app.route('/api/verify-email', methods=['POST'])
def verify():
    body = request.get_json(silent=True) or {}
    return jsonify(asyncio.run(verify_email(body.get('email') or '')))


if __name__ == '__main__':
    app.run(debug=True, host='127.0.0.1', port=8080)
