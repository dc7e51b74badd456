"""Flask app receiving GitHub webhooks.

Only two events matter: ``ping`` (sent when the hook is created) and
``pull_request``. Everything else is acknowledged and ignored so GitHub's
delivery log stays green.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import TYPE_CHECKING

import requests
from flask import Flask, jsonify, request
from github import GithubException

from reviewwindow_core.scheduler import ReviewEvent

if TYPE_CHECKING:
    from reviewwindow_core.scheduler import WindowScheduler

logger = logging.getLogger(__name__)


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw request body."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature[len("sha256=") :])


def create_app(scheduler: WindowScheduler, webhook_secret: str | None = None) -> Flask:
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "pending": len(scheduler.registry)})

    @app.post("/")
    def webhook():
        if webhook_secret and not verify_signature(
            webhook_secret, request.get_data(), request.headers.get("X-Hub-Signature-256")
        ):
            logger.warning("Rejected webhook delivery %s: bad signature", request.headers.get("X-GitHub-Delivery"))
            return jsonify({"error": "invalid signature"}), 403

        event_type = request.headers.get("X-GitHub-Event", "")
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "expected a JSON object"}), 400

        if event_type == "ping":
            return payload.get("zen", "pong"), 200, {"Content-Type": "text/plain"}

        if event_type != "pull_request":
            return jsonify({"status": "ignored", "event": event_type}), 202

        try:
            event = ReviewEvent.from_payload(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed pull_request payload (%s): %s", type(e).__name__, e)
            return jsonify({"error": "malformed pull_request payload"}), 400

        if event.action == "closed":
            scheduler.cancel(event.sha)
            return jsonify({"status": "cancelled"}), 200

        try:
            decision = scheduler.handle(event)
        except (GithubException, requests.exceptions.RequestException):
            logger.exception("GitHub lookup failed for %s#%d; no status posted", event.repo, event.number)
            return jsonify({"error": "GitHub lookup failed"}), 502

        return jsonify(
            {
                "status": "processed",
                "sha": event.sha,
                "elapsed": decision.elapsed,
                "close_time": decision.close_time.isoformat(),
            }
        ), 200

    return app
