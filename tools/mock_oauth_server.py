import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

GOOD_CODE = "good-code"
WIDE_SCOPE_CODE = "wide-scope-code"
WIDE_SCOPE = "openid https://www.googleapis.com/auth/userinfo.email"
MOCK_ACCESS_TOKEN = "mock-access-token"
MOCK_REFRESH_TOKEN = "mock-refresh-token"
MOCK_REFRESHED_TOKEN = "mock-refreshed-token"


def _write_json(handler, status, payload):
    body = json.dumps(payload).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


class MockOAuthHandler(BaseHTTPRequestHandler):
    """Minimal OAuth2 token endpoint plus a bearer-protected API for tests."""

    def do_GET(self):
        parsed = urlparse(self.path)
        auth = self.headers.get("Authorization", "")
        self.server.requests.append(("GET", parsed.path, {"authorization": auth}))

        if parsed.path == "/api":
            if auth.startswith("Bearer "):
                _write_json(self, 200, {"authorization": auth})
            else:
                _write_json(self, 401, {"error": "unauthorized"})
            return

        _write_json(self, 404, {"error": "not_found"})

    def do_POST(self):
        parsed = urlparse(self.path)
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length) if length else b""
        form = {k: v[0] for k, v in parse_qs(body.decode("utf-8")).items()}
        self.server.requests.append(("POST", parsed.path, form))

        if parsed.path != "/token":
            _write_json(self, 404, {"error": "not_found"})
            return

        grant_type = form.get("grant_type")
        if grant_type == "authorization_code" and form.get("code") == GOOD_CODE:
            _write_json(
                self,
                200,
                {
                    "access_token": MOCK_ACCESS_TOKEN,
                    "token_type": "Bearer",
                    "refresh_token": MOCK_REFRESH_TOKEN,
                    "expires_in": 3600,
                },
            )
            return

        if grant_type == "authorization_code" and form.get("code") == WIDE_SCOPE_CODE:
            _write_json(
                self,
                200,
                {
                    "access_token": MOCK_ACCESS_TOKEN,
                    "token_type": "Bearer",
                    "refresh_token": MOCK_REFRESH_TOKEN,
                    "expires_in": 3600,
                    "scope": WIDE_SCOPE,
                },
            )
            return

        if grant_type == "refresh_token" and form.get("refresh_token") == MOCK_REFRESH_TOKEN:
            _write_json(self, 200, {"access_token": MOCK_REFRESHED_TOKEN, "token_type": "Bearer", "expires_in": 3600})
            return

        _write_json(self, 400, {"error": "invalid_grant", "error_description": "Bad Request"})

    def log_message(self, _format, *_args):
        # Silence default HTTP server logging during tests.
        return


class MockOAuthServer(HTTPServer):
    allow_reuse_address = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.requests = []


def start_server_thread(port=0):
    server = MockOAuthServer(("localhost", port), MockOAuthHandler)
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    return thread, server
