"""Canonical dependency identities for URLs, paths and bare names."""

from __future__ import annotations

import re

_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_SCP_RE = re.compile(r"^[\w.\-]+@[\w.\-]+:")


def normalize_identity(reference: str) -> str:
    """Return the lowercase identity used to key a dependency.

    ``https://github.com/Alamofire/Alamofire.git`` -> ``alamofire``,
    ``../Packages/Core`` -> ``core``, ``SnapKit`` -> ``snapkit``.
    """
    ref = reference.strip()
    if _URL_RE.match(ref) or _SCP_RE.match(ref):
        if _SCP_RE.match(ref) and not _URL_RE.match(ref):
            ref = ref.split(":", 1)[1]
        ref = ref.split("?", 1)[0].split("#", 1)[0]
        segment = _last_segment(ref)
        if segment.lower().endswith(".git"):
            segment = segment[:-4]
        return segment.lower()
    if "/" in ref or "\\" in ref:
        return _last_segment(ref).lower()
    return ref.lower()


def _last_segment(ref: str) -> str:
    parts = [p for p in re.split(r"[/\\]", ref) if p]
    return parts[-1] if parts else ref
