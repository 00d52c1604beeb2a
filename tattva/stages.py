"""Report stages and their renderers.

Renderers take the merged report mapping and return a JSON-able dict for the
page, or ``None`` while the fields a stage needs have not arrived. Rows are
never validated upstream, so every accessor here tolerates missing keys and
wrong types.
"""

import math
from collections.abc import Mapping

from tattva.sequencer import Stage
from tattva.state import COMPLETED, progress_of


VERDICT_TONES = {
    "true":         "emerald",
    "mostly_true":  "green",
    "mixed":        "amber",
    "mostly_false": "orange",
    "false":        "rose",
}


# HELPERS
def _mapping(value):
    return value if isinstance(value, Mapping) else {}

def _text(value):
    if value is None or isinstance(value, (Mapping, list)):
        return ""
    return str(value)

def _strings(value):
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and not isinstance(v, (dict, list))]

def _number(value):
    if isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None

def verdict_text(label):
    return " ".join(w[:1].upper() + w[1:] for w in str(label or "").split("_") if w)

def verdict_tone(label):
    return VERDICT_TONES.get(str(label or "").lower(), "gray")

def score_tone(score):
    if score >= 7: return "green"
    if score >= 4: return "yellow"
    return "red"

def percent(prob):
    prob = _number(prob)
    if prob is None:
        return None
    return max(0, min(100, round(prob * 100)))


# RENDERERS
def render_status(report):
    progress = progress_of(report)
    complete = report.get("status") == COMPLETED or progress["status"] == COMPLETED
    return {
        "label":    "Analysis Complete" if complete else "Analyzing...",
        "complete": complete,
        "message":  progress["message"],
    }

def render_claim(claim):
    verdict = _mapping(claim.get("verdict"))
    label   = verdict.get("label")
    return {
        "id":         claim.get("id"),
        "text":       str(claim.get("text") or ""),
        "category":   claim.get("type"),
        "prominence": _number(claim.get("prominence")),
        "entities":   _strings(claim.get("named_entities")),
        "verdict": {
            "label":       verdict_text(label) or "Unverified",
            "tone":        verdict_tone(label),
            "explanation": str(verdict.get("explanation") or ""),
            "confidence":  percent(verdict.get("truth_prob")),
            "citations":   verdict.get("citations") if isinstance(verdict.get("citations"), list) else [],
            "gaps":        _strings(verdict.get("gaps")),
        },
    }

def render_claims(report):
    claims = report.get("claims")
    if not isinstance(claims, list):
        return None
    return {"claims": [render_claim(c) for c in claims if isinstance(c, Mapping)]}

def render_verdict(report):
    scores = report.get("scores")
    if not isinstance(scores, Mapping):
        return None
    out   = {}
    score = _number(scores.get("tattva_score"))
    if score is not None:
        out["tattva_score"] = {"value": f"{score:.1f}", "tone": score_tone(score)}
    distance = _mapping(scores.get("reality_distance"))
    value    = _number(distance.get("value"))
    if distance:
        out["reality_distance"] = {
            "value":  f"{value:.1f}" if value is not None else None,
            "status": distance.get("status"),
            "notes":  str(distance.get("notes") or ""),
        }
    return out or None

def render_bias(report):
    bias = report.get("bias_context")
    if not isinstance(bias, Mapping):
        return None
    return {
        "notes":           str(bias.get("notes") or ""),
        "rhetoric":        _strings(bias.get("rhetoric")),
        "bias_signals":    _strings(bias.get("bias_signals")),
        "missing_context": _strings(bias.get("missing_context")),
    }

def render_summary(report):
    summary     = _text(report.get("summary"))
    limitations = _strings(report.get("limitations"))
    if not summary and not limitations:
        return None
    return {"summary": summary, "limitations": limitations}


def default_stages():
    return [
        Stage("status",  "Analysis Status", render_status,  2.0),
        Stage("claims",  "Claims Analysis", render_claims,  2.5),
        Stage("verdict", "Overall Verdict", render_verdict, 2.0),
        Stage("bias",    "Bias Analysis",   render_bias,    2.0),
        Stage("summary", "Summary",         render_summary, 1.5),
    ]
