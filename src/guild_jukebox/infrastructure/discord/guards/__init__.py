"""Guard functions for Discord cogs and views."""

from guild_jukebox.infrastructure.discord.guards.voice_guards import (
    build_invoker,
    ensure_admin,
    get_member,
    is_admin,
    member_invoker,
    send_ephemeral,
)

__all__ = [
    "build_invoker",
    "ensure_admin",
    "get_member",
    "is_admin",
    "member_invoker",
    "send_ephemeral",
]
