"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from guild_jukebox.application.interfaces.audio_backend import AudioBackend
from guild_jukebox.application.interfaces.status_gateway import (
    StatusGateway,
    StatusMessageGoneError,
    StatusMessageRef,
)
from guild_jukebox.application.interfaces.track_resolver import TrackResolver

__all__ = [
    "AudioBackend",
    "TrackResolver",
    "StatusGateway",
    "StatusMessageRef",
    "StatusMessageGoneError",
]
