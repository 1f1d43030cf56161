from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional

import discord

SNOWFLAKE_RE = re.compile(r"^\d{17,19}$")
HEX_COLOUR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
EMOJI_NAME_RE = re.compile(r"^[A-Za-z0-9_]{2,32}$")


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def format_duration(delta: timedelta) -> str:
    """Render an elapsed time as ``1 day, 2 hours, 30 minutes``.

    Seconds are dropped; anything under a minute reads ``less than a minute``.
    """

    minutes_total = max(0, int(delta.total_seconds())) // 60
    days, rest = divmod(minutes_total, 24 * 60)
    hours, minutes = divmod(rest, 60)

    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    return ", ".join(parts) or "less than a minute"


def format_uptime(delta: timedelta) -> str:
    """``3d 4h 5m 6s``; zero-valued leading units are omitted, seconds never are."""

    seconds_total = max(0, int(delta.total_seconds()))
    days, rest = divmod(seconds_total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    out = ""
    if days:
        out += f"{days}d "
    if hours:
        out += f"{hours}h "
    if minutes:
        out += f"{minutes}m "
    return out + f"{seconds}s"


def calendar_difference(start: date, end: date) -> str:
    """Years, months and days between two dates, borrowing from the month before *end*."""

    years = end.year - start.year
    months = end.month - start.month
    days = end.day - start.day

    if days < 0:
        months -= 1
        prev_year, prev_month = (end.year, end.month - 1) if end.month > 1 else (end.year - 1, 12)
        days += calendar.monthrange(prev_year, prev_month)[1]
    if months < 0:
        years -= 1
        months += 12

    parts = []
    if years > 0:
        parts.append(_plural(years, "year"))
    if months > 0:
        parts.append(_plural(months, "month"))
    if days > 0:
        parts.append(_plural(days, "day"))
    return ", ".join(parts) or "0 days"


def is_snowflake(value: str) -> bool:
    return bool(SNOWFLAKE_RE.match(value))


def is_valid_emoji_name(name: Optional[str]) -> bool:
    return bool(name) and bool(EMOJI_NAME_RE.match(name))


def parse_hex_colour(value: str) -> Optional[discord.Colour]:
    """``#F00`` / ``#FF0000`` -> Colour, anything else -> None."""

    match = HEX_COLOUR_RE.match(value)
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return discord.Colour(int(digits, 16))


def discord_timestamp(moment: datetime, style: str = "F") -> str:
    return f"<t:{int(moment.timestamp())}:{style}>"


def truncate(text: str, limit: int = 1024) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."
