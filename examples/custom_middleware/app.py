"""Custom Middleware — app, group, and route middleware.

Demonstrates:
- Function middleware (timing — adds X-Response-Time header)
- Class middleware (rate limiter — 5 req/min per client, returns 429 when exceeded)
- Group middleware (token check on everything under /admin)
- Route middleware that rewrites a bound argument for one dispatch
- threading.Lock for thread-safe shared state (free-threading)

Run:
    cd examples/custom_middleware && python app.py
"""

import threading
import time

from switchyard import App, Request, Response
from switchyard.middleware import Next
from switchyard.routing.route import with_route_argument
from switchyard.testing import SegmentMatcher, TestClient

app = App(matcher=SegmentMatcher())


# ---------------------------------------------------------------------------
# Function middleware — timing
# ---------------------------------------------------------------------------


def timing(request: Request, response: Response, next: Next) -> Response:
    """Add X-Response-Time header to every response."""
    start = time.monotonic()
    response = next(request, response)
    elapsed = time.monotonic() - start
    return response.with_header("X-Response-Time", f"{elapsed:.3f}s")


# ---------------------------------------------------------------------------
# Class middleware — rate limiter
# ---------------------------------------------------------------------------


class RateLimiter:
    """Per-client rate limiter. Returns 429 when limit exceeded."""

    def __init__(self, max_requests: int, window: float) -> None:
        self.max_requests = max_requests
        self.window = window
        self._counts: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def __call__(self, request: Request, response: Response, next: Next) -> Response:
        # Use X-Forwarded-For if behind a proxy; else a simple client identifier
        client_ip = request.headers.get("x-forwarded-for", "127.0.0.1")
        if "," in client_ip:
            client_ip = client_ip.split(",")[0].strip()

        with self._lock:
            now = time.monotonic()
            hits = self._counts.setdefault(client_ip, [])
            hits[:] = [t for t in hits if now - t < self.window]

            if len(hits) >= self.max_requests:
                return response.with_body("Too Many Requests").with_status(429)
            hits.append(now)

        return next(request, response)


# ---------------------------------------------------------------------------
# Group and route middleware
# ---------------------------------------------------------------------------


def require_token(request: Request, response: Response, next: Next) -> Response:
    """Reject admin requests without the right X-Token header."""
    if request.headers.get("x-token") != "secret":
        return response.with_body("Forbidden").with_status(403)
    return next(request.with_attribute("admin", True), response)


def resolve_me(request: Request, response: Response, next: Next) -> Response:
    """Turn ``/users/me`` into the signed-in user's id."""
    return next(with_route_argument(request, "id", "1"), response)


# ---------------------------------------------------------------------------
# Middleware stack (order: first added runs first on request)
# ---------------------------------------------------------------------------

app.add_middleware(timing)
app.add_middleware(RateLimiter(max_requests=5, window=60.0))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.route("/")
def index(request, response, args):
    """Simple OK response."""
    return "OK"


@app.route("/slow")
def slow(request, response, args):
    """Delayed response — verifies timing header."""
    time.sleep(0.1)
    return "OK"


@app.route("/users/me", middleware=[resolve_me])
def me(request, response, args):
    return f"user {args['id']}"


def admin(app: App) -> None:
    app.get("/stats", lambda request, response, args: f"admin={request.attribute('admin')}")


app.group("/admin", admin).add(require_token)


if __name__ == "__main__":
    with TestClient(app) as client:
        for path in ("/", "/slow", "/users/me", "/admin/stats"):
            response = client.get(path)
            print(f"GET {path} -> {response.status} {response.text!r}")
