"""Cross-origin headers attached to every response."""
from flask import Flask, Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def preflight_response() -> Response:
    """Answer a CORS preflight without further processing."""
    return Response("ok", status=200, headers=CORS_HEADERS, mimetype="text/plain")


def init_cors(app: Flask) -> None:
    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        return response
