import json
import logging
import urllib.error
import urllib.request


log = logging.getLogger(__name__)

USER_AGENT = "tattva/1.0"


class SubmissionError(Exception):
    pass


def submit_analysis(url, user_id, endpoint, timeout=10):
    """Ask the analysis backend to fact-check ``url`` for ``user_id``.

    The backend answers straight away and writes results to the reports
    table later, so the response body is informational only.
    """
    body = json.dumps({"url": url, "clerk_user_id": user_id}).encode()
    req  = urllib.request.Request(
        endpoint,
        data=body,
        method="POST",
        headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as r:
            raw = r.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        raise SubmissionError(f"API request failed with status {e.code}") from e
    except (urllib.error.URLError, OSError) as e:
        raise SubmissionError(f"API request failed: {e}") from e

    log.info("[Submit] Accepted %s for user %s", url, user_id)
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {"raw": raw[:500]}
