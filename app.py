from flask import Flask, render_template, request, jsonify, Response, session
from flask_cors import CORS
import hmac, logging, uuid

from tattva.channel import SubscriptionKey
from tattva.config import load_config
from tattva.feed import ChangeFeed
from tattva.keystore import SessionKeyStore
from tattva.logging import setup_logging
from tattva.session import DashboardSession, SessionRegistry
from tattva.submit import SubmissionError, submit_analysis


log = logging.getLogger("tattva.app")

RETRY_MESSAGE = "Failed to start analysis. Please try again."


def create_app(overrides=None, feed=None):
    # CONFIG
    app = Flask(__name__)
    app.config.from_mapping(load_config(overrides))
    CORS(app)

    feed     = feed or ChangeFeed()
    sessions = SessionRegistry(
        lambda: DashboardSession(feed, typing_delay=app.config["TYPING_DELAY"]),
        idle_ttl=app.config["SESSION_IDLE_TTL"],
    )
    app.extensions["tattva.feed"]     = feed
    app.extensions["tattva.sessions"] = sessions


    # HELPERS
    def current_user():
        return (request.headers.get(app.config["USER_HEADER"]) or "").strip() or None

    def current_dashboard():
        sid = session.get("sid")
        if not sid:
            sid = session["sid"] = uuid.uuid4().hex
        dashboard, _ = sessions.get(sid)
        return dashboard

    def sync_key(dashboard):
        # The server-side dashboard owns the watch. The cookie is only read
        # to resume after a restart; polls still carrying an older cookie
        # (sent while /analyze or /reset was in flight) must not touch it.
        user_id = current_user()
        if dashboard.key is not None:
            if dashboard.key.user_id == user_id:
                return
            # Signed out or another user on this browser.
            dashboard.clear(resumable=True)
        if not dashboard.resumable:
            return
        key = SessionKeyStore(session).load_key(user_id)
        if key is not None:
            dashboard.watch(key)


    # ROUTES
    @app.route("/")
    def index():
        sync_key(current_dashboard())
        return render_template("index.html")

    @app.route("/analyze", methods=["POST"])
    def analyze():
        body = request.get_json(silent=True) or {}
        url  = str(body.get("url") or "").strip()
        if not url:
            return jsonify({"error": "Please provide a media URL"}), 400
        user_id = current_user()
        if not user_id:
            return jsonify({"error": "Please sign in to start an analysis"}), 401

        key       = SubscriptionKey(user_id, url)
        store     = SessionKeyStore(session)
        dashboard = current_dashboard()
        # Subscribe before submitting so no early row update is missed.
        store.save(key)
        dashboard.watch(key)
        try:
            data = submit_analysis(url, user_id, app.config["ANALYSIS_API_URL"],
                                   timeout=app.config["SUBMIT_TIMEOUT"])
        except SubmissionError as e:
            log.warning("[Submit] %s", e)
            store.clear()
            dashboard.clear(error=RETRY_MESSAGE)
            return jsonify({"error": RETRY_MESSAGE, "retryable": True}), 502
        return jsonify({"media_url": url, "response": data}), 202

    @app.route("/report")
    def report():
        dashboard = current_dashboard()
        sync_key(dashboard)
        return jsonify(dashboard.view())

    @app.route("/reset", methods=["POST"])
    def reset():
        SessionKeyStore(session).clear()
        current_dashboard().clear()
        return jsonify({"ok": True})

    @app.route("/realtime/<table>", methods=["POST"])
    def realtime(table):
        token = app.config["FEED_TOKEN"]
        if token and not hmac.compare_digest(request.headers.get("X-Feed-Token", ""), token):
            return jsonify({"error": "Invalid feed token"}), 403
        row = request.get_json(silent=True)
        if not isinstance(row, dict):
            return jsonify({"error": "Expected a JSON object row"}), 400
        event = str(request.args.get("event", "UPDATE")).upper()
        return jsonify({"delivered": feed.publish(table, row, event=event)})

    @app.route("/sw.js")
    def service_worker():
        return Response("""
const CACHE='tattva-v1';
self.addEventListener('install',e=>e.waitUntil(caches.open(CACHE).then(c=>c.addAll(['/']))));
self.addEventListener('fetch',e=>{if(e.request.method!=='GET')return;e.respondWith(fetch(e.request).catch(()=>caches.match(e.request)));});
""", mimetype="application/javascript")

    return app


if __name__ == "__main__":
    app = create_app()
    setup_logging(app.config["LOG_LEVEL"])
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
