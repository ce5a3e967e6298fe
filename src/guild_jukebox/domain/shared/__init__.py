"""
Shared Domain Kernel

Contains exceptions, constrained types, and message constants shared across
all bounded contexts.
"""

from guild_jukebox.domain.shared.exceptions import (
    BackendDisconnectedError,
    BusinessRuleViolationError,
    ChannelNotAllowedError,
    DjRoleRequiredError,
    DomainError,
    EmptyHistoryError,
    EmptyQueueError,
    FilterNotApplicableError,
    InvalidOperationError,
    NoActiveSessionError,
    NoVoiceChannelError,
    PlaybackFailedError,
    ResolutionFailedError,
    VoiceJoinFailedError,
    VolumeUnchangedError,
)

__all__ = [
    "DomainError",
    "BusinessRuleViolationError",
    "InvalidOperationError",
    "NoActiveSessionError",
    "NoVoiceChannelError",
    "EmptyQueueError",
    "EmptyHistoryError",
    "ResolutionFailedError",
    "FilterNotApplicableError",
    "VolumeUnchangedError",
    "BackendDisconnectedError",
    "VoiceJoinFailedError",
    "PlaybackFailedError",
    "DjRoleRequiredError",
    "ChannelNotAllowedError",
]
