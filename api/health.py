"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
import os

SERVICE_NAME = "support-hero-bot"

INTEGRATIONS = {
    "slack": ("SLACK_BOT_TOKEN",),
    "supabase": ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"),
    "pagerduty": ("PAGERDUTY_TOKEN",),
}


def integration_status(environ=None) -> dict:
    """Which integrations have their credentials set; values are never echoed."""
    env = os.environ if environ is None else environ
    return {name: all(env.get(key) for key in keys) for name, keys in INTEGRATIONS.items()}


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        integrations = integration_status()
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps({
            "status": "ok" if all(integrations.values()) else "degraded",
            "service": SERVICE_NAME,
            "integrations": integrations,
        })
        self.wfile.write(response.encode('utf-8'))

    def do_POST(self):
        """Same as GET."""
        self.do_GET()
