"""Tests for ffmpeg option building and filter chains."""

from unittest.mock import patch

import pytest
from conftest import make_track

from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.value_objects import FilterType, StartSeconds
from guild_jukebox.infrastructure.audio.ffmpeg_player import FFmpegConfig, FFmpegSourceFactory
from guild_jukebox.infrastructure.audio.filters import FILTER_CHAINS, filter_chain, playback_speed


class TestFilterChains:
    def test_every_filter_has_a_chain(self):
        assert set(FILTER_CHAINS) == set(FilterType)

    def test_none_is_empty(self):
        assert filter_chain(FilterType.NONE) == ""
        assert playback_speed(FilterType.NONE) == 1.0

    @pytest.mark.parametrize("filter_type", FilterType.selectable())
    def test_selectable_filters_change_audio(self, filter_type):
        assert filter_chain(filter_type)
        assert playback_speed(filter_type) > 0

    def test_speed_changing_filters(self):
        assert playback_speed(FilterType.NIGHTCORE) == 1.25
        assert playback_speed(FilterType.DOUBLETIME) == 2.0
        assert playback_speed(FilterType.BASSBOOST) == 1.0


class TestFFmpegConfig:
    def test_before_options_with_seek(self):
        opts = FFmpegConfig().get_before_options("-reconnect 1", StartSeconds(12.5))
        assert opts.startswith("-reconnect 1")
        assert "User-Agent" in opts
        assert opts.endswith("-ss 12.50")

    def test_options_without_filter(self):
        opts = FFmpegConfig(fade_in_seconds=0).get_options("-vn", FilterType.NONE)
        assert opts == "-vn"

    def test_options_chain_fade_and_filter(self):
        opts = FFmpegConfig(fade_in_seconds=0.5).get_options("-vn", FilterType.BASSBOOST)
        assert opts == '-vn -af "afade=t=in:ss=0:d=0.5,bass=g=10:f=110:w=0.6"'


class TestFFmpegSourceFactory:
    def test_build_options_uses_settings(self):
        settings = AudioSettings(ffmpeg_options={"before_options": "-nostdin", "options": "-vn -sn"})
        before, opts = FFmpegSourceFactory(settings).build_options(FilterType.NONE)

        assert before.startswith("-nostdin")
        assert opts.startswith("-vn -sn")

    def test_missing_stream_url(self):
        with pytest.raises(ValueError):
            FFmpegSourceFactory().create_source(make_track("a", stream_url=None), volume=50)

    def test_create_source_scales_volume(self):
        track = make_track("a")
        with (
            patch("discord.FFmpegPCMAudio") as ffmpeg_audio,
            patch("discord.PCMVolumeTransformer") as transformer,
        ):
            FFmpegSourceFactory().create_source(track, volume=40, filter_type=FilterType.POP)

        assert ffmpeg_audio.call_args.args[0] == track.stream_url
        assert "equalizer" in ffmpeg_audio.call_args.kwargs["options"]
        assert transformer.call_args.kwargs["volume"] == pytest.approx(0.4)
