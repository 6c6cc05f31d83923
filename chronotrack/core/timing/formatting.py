from __future__ import annotations

MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000
MS_PER_SECOND = 1000


def format_time(ms: int) -> str:
    """Render ``MM:SS.CC``, or ``HH:MM:SS.CC`` from one hour up; always truncates."""

    t = max(0, int(ms))
    hours = t // MS_PER_HOUR
    minutes = (t % MS_PER_HOUR) // MS_PER_MINUTE
    seconds = (t % MS_PER_MINUTE) // MS_PER_SECOND
    hundredths = (t % MS_PER_SECOND) // 10
    if t >= MS_PER_HOUR:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{hundredths:02d}"
    return f"{minutes:02d}:{seconds:02d}.{hundredths:02d}"


__all__ = ["format_time"]
