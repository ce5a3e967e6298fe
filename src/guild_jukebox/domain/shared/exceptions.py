"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


# ── Player errors ───────────────────────────────────────────────────


class NoActiveSessionError(DomainError):
    """Raised when an operation needs a player but the guild has none."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        super().__init__(message or "Nothing is playing right now.", code="NO_ACTIVE_SESSION")
        self.guild_id = guild_id


class NoVoiceChannelError(DomainError):
    """Raised when the invoking user is not connected to a voice channel."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "You need to be in a voice channel to do that.", code="NO_VOICE_CHANNEL"
        )


class EmptyQueueError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The queue is empty.", code="EMPTY_QUEUE")


class EmptyHistoryError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "There is no previous track to go back to.", code="EMPTY_HISTORY")


class ResolutionFailedError(DomainError):
    """Raised when a query produced no playable track (including timeouts)."""

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(message or f"No results found for `{query}`.", code="RESOLUTION_FAILED")
        self.query = query


class FilterNotApplicableError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "Filters can only be changed while a track is playing.",
            code="FILTER_NOT_APPLICABLE",
        )


class VolumeUnchangedError(DomainError):
    """Raised when a volume change would leave the volume where it is."""

    def __init__(self, volume: int, message: str | None = None) -> None:
        super().__init__(message or f"Volume is already at {volume}%.", code="VOLUME_UNCHANGED")
        self.volume = volume


class BackendDisconnectedError(DomainError):
    """Raised when the voice connection was lost unexpectedly."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        super().__init__(
            message or "I was disconnected from the voice channel.", code="BACKEND_DISCONNECTED"
        )
        self.guild_id = guild_id


class VoiceJoinFailedError(DomainError):
    def __init__(self, channel_id: int, message: str | None = None) -> None:
        super().__init__(
            message or "I couldn't join your voice channel.", code="VOICE_JOIN_FAILED"
        )
        self.channel_id = channel_id


class PlaybackFailedError(DomainError):
    def __init__(self, title: str, message: str | None = None) -> None:
        super().__init__(message or f"Could not start playing **{title}**.", code="PLAYBACK_FAILED")
        self.title = title


# ── Guild policy errors ─────────────────────────────────────────────


class DjRoleRequiredError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "DJ-only mode is on: you need a DJ role to do that.", code="DJ_ROLE_REQUIRED"
        )


class ChannelNotAllowedError(DomainError):
    def __init__(self, channel_id: int | None, message: str | None = None) -> None:
        super().__init__(
            message or "Music commands are not allowed in this channel.", code="CHANNEL_NOT_ALLOWED"
        )
        self.channel_id = channel_id
