from __future__ import annotations

_INVALID = set('<>:"/\\|?*') | {chr(c) for c in range(32)}


def clean_file_name(name: str) -> str:
    """Strip characters that are not allowed in file or folder names on any platform."""
    return "".join(ch for ch in name if ch not in _INVALID)
