"""Video stream argument helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ffconform.backend.derive import OUTPUT_COLOR_RANGE, SDR_COLOR
from ffconform.models.types import Encoder

from .stream_args import codec_flag, option, tag_flag

if TYPE_CHECKING:
    from ffconform.models.plan import VideoEncodeParams

KIND = "v"  #: Output stream type letter for video and thumbnails.
DEINTERLACE: str = "bwdif"  #: Motion-adaptive de-interlacer.
FULL_RANGE: str = f"scale=out_range={OUTPUT_COLOR_RANGE}"  #: Convert to full range without tonemapping.
TONEMAP_ZSCALE: str = (
    "zscale=t=linear:npl=100,"
    "format=gbrpf32le,"
    f"zscale=p={SDR_COLOR},"
    "tonemap=tonemap=hable:desat=0,"
    f"zscale=t={SDR_COLOR}:m={SDR_COLOR}:r={OUTPUT_COLOR_RANGE}"
)  #: Filter chain for HDR to SDR tonemapping via ``zscale``.
SQUARE_PIXELS: str = "setsar=1"  #: Mark resampled output as square-pixel.
X265_QUIET: tuple[str, ...] = ("-x265-params", "log-level=error")  #: Keep x265 from flooding the log.

ENCODER_FLAGS: dict[Encoder, tuple[str, ...]] = {
    Encoder.X264: (),
    Encoder.X265: X265_QUIET,
}  #: Encoder-specific flags.


def _fps_filter(params: VideoEncodeParams) -> str | None:
    if params.fps is None:
        return None
    fps = params.fps.reduced()
    return f"fps={fps.num}" if fps.den == 1 else f"fps={fps.num}/{fps.den}"


def filters(params: VideoEncodeParams) -> tuple[str, ...]:
    """Return the filter chain for a re-encoded stream.

    De-interlacing runs first so later filters see whole frames; the range
    conversion (or tonemap) always runs so every output is full range.
    """
    chain: list[str] = []
    if params.deinterlace:
        chain.append(DEINTERLACE)
    chain.append(TONEMAP_ZSCALE if params.tonemap else FULL_RANGE)
    if fps := _fps_filter(params):
        chain.append(fps)
    if params.scales:
        chain.append(f"scale=w={params.width}:h={params.height}")
    if params.square_pixels:
        chain.append(SQUARE_PIXELS)
    return tuple(chain)


def encode(params: VideoEncodeParams, index: int) -> tuple[str, ...]:
    """Return args to encode output video stream ``index`` with ``params``."""
    args = (
        *codec_flag(KIND, index),
        params.encoder.ffmpeg_name,
        option("preset", KIND, index),
        params.preset,
        option("crf", KIND, index),
        str(params.crf),
        option("profile", KIND, index),
        params.profile,
        option("pix_fmt", KIND, index),
        params.pixel_format,
        option("color_range", KIND, index),
        OUTPUT_COLOR_RANGE,
        option("filter", KIND, index),
        ",".join(filters(params)),
    )
    if params.tonemap:
        args = (
            *args,
            option("color_trc", KIND, index),
            SDR_COLOR,
            option("color_primaries", KIND, index),
            SDR_COLOR,
            option("colorspace", KIND, index),
            SDR_COLOR,
        )
    args = args + ENCODER_FLAGS.get(params.encoder, ())
    if params.tag:
        args = (*args, *tag_flag(KIND, index), params.tag)
    return args


def retag(tag: str, index: int) -> tuple[str, ...]:
    """Return args rewriting the codec tag of copied video stream ``index``."""
    return (*tag_flag(KIND, index), tag)
