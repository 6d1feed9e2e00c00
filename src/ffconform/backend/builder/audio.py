"""Audio stream argument helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ffconform.models.types import Encoder

from .stream_args import bitrate_flag, codec_flag, option

if TYPE_CHECKING:
    from ffconform.models.plan import AudioEncodeParams

KIND = "a"  #: Output stream type letter for audio.
FDK_PROFILE: str = "aac_low"  #: AAC-LC profile name for ``libfdk_aac``.


def encode(params: AudioEncodeParams, index: int) -> tuple[str, ...]:
    """Return args to encode output audio stream ``index`` with ``params``."""
    args: tuple[str, ...] = (*codec_flag(KIND, index), params.encoder.ffmpeg_name)
    if params.encoder is Encoder.FDK_AAC:
        args = (*args, option("profile", KIND, index), FDK_PROFILE)
        if params.vbr is not None:
            args = (*args, option("vbr", KIND, index), str(params.vbr))
        if params.cutoff is not None:
            args = (*args, option("cutoff", KIND, index), str(params.cutoff))
    elif params.bitrate is not None:
        args = (*args, *bitrate_flag(KIND, index), str(params.bitrate))
    if params.channels is not None:
        args = (*args, option("ac", KIND, index), str(params.channels))
    if params.sample_rate is not None:
        args = (*args, option("ar", KIND, index), str(params.sample_rate))
    return args
