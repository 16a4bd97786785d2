"""
Minimal liveness endpoint for the orchestrator's health check.

GET /ping answers 200 "pong!" unconditionally; every other path is a 404.
It says nothing about sync health. Uses only the stdlib HTTP server, run in
a daemon thread next to the sync loop; each connection gets its own thread
so one stalled client cannot block the others.
"""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from ecr_credentials.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_PORT = 8080


class PingHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if urlsplit(self.path).path != "/ping":
            self.send_response(404)
            self.end_headers()
            return
        body = b"pong!"
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        # Health checks hit this every few seconds
        logger.debug(f"liveness: {format % args}")


def create_liveness_server(port: int = DEFAULT_PORT, host: str = "0.0.0.0") -> ThreadingHTTPServer:
    """Bind the liveness server. Raises OSError if the port cannot be bound."""
    server = ThreadingHTTPServer((host, port), PingHandler)
    server.daemon_threads = True
    logger.info(f"Starting Healthcheck listener at :{server.server_address[1]}/ping")
    return server


def start_liveness_server(server: ThreadingHTTPServer) -> threading.Thread:
    thread = threading.Thread(target=server.serve_forever, name="liveness", daemon=True)
    thread.start()
    return thread
