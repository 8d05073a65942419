"""Hello World — the simplest switchyard app.

Demonstrates routes, path arguments, default arguments, Response
chaining, printed output capture, and a custom error handler.

Run:
    python app.py
"""

from switchyard import App, Request, Response
from switchyard.testing import SegmentMatcher, TestClient

app = App(matcher=SegmentMatcher())


@app.route("/")
def index(request, response, args):
    return "Hello, World!"


@app.route("/greet/{name}")
def greet(request, response, args):
    return f"Hello, {args['name']}!"


@app.route("/printed/{name}", output_capture="prepend")
def printed(request, response, args):
    print("Hello, ", end="")
    return f"{args['name']}!"


app.get("/lang", lambda request, response, args: args["lang"]).set_argument("lang", "en")


@app.route("/custom")
def custom(request, response, args):
    return Response("Created").with_status(201).with_header("X-Custom", "switchyard")


@app.error(404)
def not_found(request: Request):
    return f"Nothing at {request.path}"


if __name__ == "__main__":
    with TestClient(app) as client:
        for path in ("/", "/greet/world", "/printed/world", "/lang", "/custom", "/missing"):
            response = client.get(path)
            print(f"GET {path} -> {response.status} {response.text!r}")
