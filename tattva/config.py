import os


DEFAULT_ANALYSIS_API_URL = "http://localhost:8000/api/v1/fact-check-url"


def load_config(overrides=None, environ=None):
    """Flask config for the dashboard, read from ``TATTVA_*`` variables."""
    env = os.environ if environ is None else environ
    config = {
        "SECRET_KEY":       env.get("TATTVA_SECRET_KEY", ""),
        "ANALYSIS_API_URL": env.get("TATTVA_ANALYSIS_API_URL", DEFAULT_ANALYSIS_API_URL),
        "SUBMIT_TIMEOUT":   float(env.get("TATTVA_SUBMIT_TIMEOUT", "10")),
        "USER_HEADER":      env.get("TATTVA_USER_HEADER", "X-User-Id"),
        "FEED_TOKEN":       env.get("TATTVA_FEED_TOKEN", ""),
        "TYPING_DELAY":     float(env.get("TATTVA_TYPING_DELAY", "1.2")),
        "SESSION_IDLE_TTL": float(env.get("TATTVA_SESSION_IDLE_TTL", "3600")),
        "LOG_LEVEL":        env.get("TATTVA_LOG_LEVEL", "INFO"),
    }
    config.update(overrides or {})
    if not config["SECRET_KEY"]:
        raise ValueError("TATTVA_SECRET_KEY not set")
    return config
