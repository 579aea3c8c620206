import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict, deque

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from data_loader import (
    curriculum_records,
    data_file_mtime,
    get_curriculum,
    get_progress,
    has_program,
    list_programs,
    load_data,
)
from eligibility import derive_status_sets
from projection import build_projection, build_projection_options
from validators import parse_projection_request, validate_projection_body

load_dotenv()

app = Flask(__name__)

API_VERSION = "1.0.0"


# ── Configuration ─────────────────────────────────────────────────────────────
def _env_number(name: str, default, cast=int, minimum=0):
    """Numeric env var, floored at minimum. Unset or unparsable gives default."""
    try:
        return max(minimum, cast(os.environ[name]))
    except (KeyError, TypeError, ValueError):
        return default


def _resolve_data_path(raw: str | None, project_root: str) -> str:
    if not raw:
        return os.path.join(project_root, "data")
    return raw if os.path.isabs(raw) else os.path.join(project_root, raw)


PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_DATA_PATH = _resolve_data_path(None, PROJECT_ROOT)
DATA_PATH = _resolve_data_path(os.environ.get("DATA_PATH"), PROJECT_ROOT)

_SLOW_REQUEST_LOG_MS = _env_number("SLOW_REQUEST_LOG_MS", 750.0, cast=float)
_REQUEST_CACHE_SIZE = _env_number("REQUEST_CACHE_SIZE", 128, minimum=1)
_DIAG_LOG_ENABLED: bool = os.environ.get("PROJECTION_DIAG_LOG", "false").lower() == "true"


# ── Rate limiting ─────────────────────────────────────────────────────────────
class _ClientRateLimiter:
    """Sliding window of request timestamps per client address."""

    def __init__(self, max_requests: int, window_seconds: float):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._hits: dict[str, deque] = {}

    def allow(self, client: str) -> bool:
        now = time.monotonic()
        with self._lock:
            hits = self._hits.setdefault(client, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def reset(self, client: str | None = None) -> None:
        with self._lock:
            if client is None:
                self._hits.clear()
            else:
                self._hits.pop(client, None)


# 10 projection requests per minute per client
_rate_limiter = _ClientRateLimiter(max_requests=10, window_seconds=60)


def _client_address() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    return forwarded.split(",")[0].strip() or (request.remote_addr or "")


# ── Response cache ────────────────────────────────────────────────────────────
class _ProjectionCache:
    """Bounded LRU of projection responses, keyed by data version and request body."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, dict] = OrderedDict()

    @staticmethod
    def key(kind: str, body, data_version) -> str:
        canonical = json.dumps(body or {}, sort_keys=True, separators=(",", ":"))
        digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"{kind}:{data_version}:{digest}"

    def get(self, key: str):
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            return self._entries.get(key)

    def put(self, key: str, value: dict) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_projection_cache = _ProjectionCache(_REQUEST_CACHE_SIZE)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _error_response(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


# ── Data load and hot reload ──────────────────────────────────────────────────
_data_lock = threading.Lock()


def _load_startup_data():
    """Load DATA_PATH, falling back to the bundled data when the configured path is gone."""
    global DATA_PATH
    if not os.path.exists(DATA_PATH) and DATA_PATH != _DEFAULT_DATA_PATH:
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
    try:
        data = load_data(DATA_PATH)
    except FileNotFoundError:
        print(f"[FATAL] Data path not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"[OK] Loaded {data['course_count']} curriculum rows from {DATA_PATH}")
    return data, data_file_mtime(DATA_PATH)


_data, _data_mtime = _load_startup_data()


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Swap in a fresh dataset when the files under DATA_PATH have a newer mtime.
    A failed reload keeps the current dataset. Returns True when data changed.
    """
    global _data, _data_mtime

    with _data_lock:
        mtime = data_file_mtime(DATA_PATH)
        stale = mtime is not None and (_data_mtime is None or mtime > _data_mtime)
        if not (force or stale):
            return False
        try:
            fresh = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False
        _data = fresh
        if mtime is not None:
            _data_mtime = mtime
        _projection_cache.clear()
    print(f"[OK] Reloaded {fresh['course_count']} curriculum rows from {DATA_PATH}")
    return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# ── Request hooks ─────────────────────────────────────────────────────────────
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _finish_request(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if elapsed_ms >= _SLOW_REQUEST_LOG_MS:
            print(
                f"[SLOW] {request.method} {request.path} "
                f"status={response.status_code} duration_ms={elapsed_ms:.1f}"
            )
    return response


# ── Error handlers ─────────────────────────────────────────────────────────────
@app.errorhandler(HTTPException)
def handle_http_error(e):
    return _error_response(e.name.upper().replace(" ", "_"), e.description or e.name, e.code)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    print(f"[WARN] Unhandled error on {request.path}: {e!r}", file=sys.stderr)
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", 500)


# ── Routes ────────────────────────────────────────────────────────────────────
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": API_VERSION,
        "course_count": _data.get("course_count", 0) if _data else 0,
    })


@app.route("/api/programs", methods=["GET"])
def get_programs():
    """Return the program/catalog pairs that have a curriculum."""
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)
    return jsonify({"programs": list_programs(_data)})


@app.route("/api/curriculum", methods=["GET"])
def get_curriculum_endpoint():
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)
    program_id = str(request.args.get("program_id", "") or "").strip()
    catalog = str(request.args.get("catalog", "") or "").strip()
    if not program_id or not catalog:
        return _error_response("INVALID_INPUT", "program_id and catalog query parameters are required.", 400)
    if not has_program(_data, program_id, catalog):
        return _error_response("UNKNOWN_PROGRAM", f"Program '{program_id}' catalog '{catalog}' is not recognized.", 404)
    courses = get_curriculum(_data, program_id, catalog)
    return jsonify({"program_id": program_id, "catalog": catalog, "courses": curriculum_records(courses)})


def _log_projection_diag(req, curriculum, progress, max_alternatives=None) -> None:
    if not _DIAG_LOG_ENABLED:
        return
    approved, failed = derive_status_sets(progress)
    print(
        f"[DIAG] projection program={req.program_id}/{req.catalog} "
        f"curriculum={len(curriculum)} progress={len(progress)} "
        f"approved={len(approved)} failed={len(failed)} "
        f"cap={req.rules.credit_cap} maximize={req.rules.maximize_credits} "
        f"prioritize_failed={req.rules.prioritize_failed} "
        f"order={list(req.rules.priority_order)} max_alternatives={max_alternatives}"
    )


def _run_projection_request(with_alternatives: bool):
    """Shared request pipeline: rate limit -> validate -> cache -> load -> engine."""
    if not app.config.get("TESTING") and not _rate_limiter.allow(_client_address()):
        return _error_response("RATE_LIMITED", "Too many requests. Please wait before submitting again.", 429)
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)

    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_projection_body(body, with_alternatives=with_alternatives)
    if err_code:
        return _error_response(err_code, err_msg, 400)

    cache_key = _ProjectionCache.key("options" if with_alternatives else "projection", body, _data_mtime)
    if _cache_enabled():
        cached = _projection_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    req = parse_projection_request(body)
    if not has_program(_data, req.program_id, req.catalog):
        return _error_response(
            "UNKNOWN_PROGRAM",
            f"Program '{req.program_id}' catalog '{req.catalog}' is not recognized.",
            404,
        )

    curriculum = get_curriculum(_data, req.program_id, req.catalog)
    progress = get_progress(_data, req.student_id, req.program_id)

    if with_alternatives:
        _log_projection_diag(req, curriculum, progress, req.max_alternatives)
        options = build_projection_options(curriculum, progress, req.rules, req.max_alternatives)
        response = {"options": [o.to_dict() for o in options]}
    else:
        _log_projection_diag(req, curriculum, progress)
        response = build_projection(curriculum, progress, req.rules).to_dict()

    if _cache_enabled():
        _projection_cache.put(cache_key, response)
    return jsonify(response)


@app.route("/api/projection", methods=["POST"])
def projection_endpoint():
    """Single best course selection for the student's next term."""
    return _run_projection_request(with_alternatives=False)


@app.route("/api/projection/options", methods=["POST"])
def projection_options_endpoint():
    """Best selection followed by up to max_alternatives - 1 alternatives."""
    return _run_projection_request(with_alternatives=True)


app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])


@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return _error_response("NOT_FOUND", f"/api/{rest} not found", 404)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
