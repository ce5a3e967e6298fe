"""FFmpeg audio-filter chains for each player filter."""

from __future__ import annotations

from typing import Final, NamedTuple

from guild_jukebox.domain.music.value_objects import FilterType

SAMPLE_RATE: Final[int] = 48_000


class FilterChain(NamedTuple):
    af: str
    # Media seconds consumed per wall-clock second; needed to resume at the right spot.
    speed: float = 1.0


def _pitch(factor: float, tempo: float = 1.0) -> str:
    chain = f"asetrate={SAMPLE_RATE}*{factor},aresample={SAMPLE_RATE}"
    if tempo != 1.0:
        chain += f",atempo={tempo}"
    return chain


FILTER_CHAINS: Final[dict[FilterType, FilterChain]] = {
    FilterType.NONE: FilterChain(""),
    FilterType.BASSBOOST: FilterChain("bass=g=10:f=110:w=0.6"),
    FilterType.POP: FilterChain(
        "equalizer=f=60:t=q:w=1:g=-2,equalizer=f=1000:t=q:w=1:g=3,equalizer=f=8000:t=q:w=1:g=2"
    ),
    FilterType.SOFT: FilterChain("lowpass=f=2800,volume=0.9"),
    FilterType.TREBLEBASS: FilterChain("bass=g=6,treble=g=6"),
    FilterType.NIGHTCORE: FilterChain(_pitch(1.25), speed=1.25),
    FilterType.EIGHTD: FilterChain("apulsator=hz=0.125"),
    FilterType.VAPORWAVE: FilterChain(_pitch(0.8), speed=0.8),
    FilterType.DOUBLETIME: FilterChain("atempo=2.0", speed=2.0),
    FilterType.SLOWMOTION: FilterChain("atempo=0.5", speed=0.5),
    FilterType.CHIPMUNK: FilterChain(_pitch(1.35, tempo=0.74)),
    FilterType.DARTHVADER: FilterChain(_pitch(0.75, tempo=1.333)),
    FilterType.DANCE: FilterChain(_pitch(1.25, tempo=1.1), speed=1.375),
    FilterType.VIBRATO: FilterChain("vibrato=f=6:d=0.5"),
    FilterType.TREMOLO: FilterChain("tremolo=f=4:d=0.6"),
}


def filter_chain(filter_type: FilterType) -> str:
    return FILTER_CHAINS[filter_type].af


def playback_speed(filter_type: FilterType) -> float:
    return FILTER_CHAINS[filter_type].speed
