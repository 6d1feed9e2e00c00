"""Per-stream copy, remux and re-encode decisions.

:func:`build_plan` is a pure function of the probed inventory, the policy and
the stream compatibility facts gathered by the caller. Everything the later
stages need is snapshotted into the returned
:class:`~ffconform.models.plan.EncodingPlan`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, assert_never

from ffconform.errors import ResizeInfeasible
from ffconform.models.catalog import (
    ALL_SOURCE_AUDIO_CODECS,
    ALL_SOURCE_VIDEO_CODECS,
    MP4_FRIENDLY_IMAGE_CODECS,
    MP4_SUBTITLE_CODEC,
    match_audio_codec,
    match_video_codec,
    match_video_codec_by_name,
)
from ffconform.models.plan import EncodingPlan, StreamDecision
from ffconform.models.types import MetadataMode, ReencodeMode, StreamAction, StreamKind
from ffconform.tools.capabilities import best_aac_encoder, require_encoder

from .derive import audio_triggers, derive_audio_params, derive_video_params, valid_language, video_triggers

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from ffconform.models.catalog import ContainerFormat
    from ffconform.models.ffprobe import SourceInventory, StreamDescriptor
    from ffconform.models.options import ProcessingPolicy
    from ffconform.models.types import Encoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MuxCompatibility:
    """Probed facts about copying source streams into an MP4 output.

    ``copyable`` maps stream indices to whether a plain copy works;
    ``mov_text`` maps subtitle indices to whether conversion to ``mov_text``
    works. Streams missing from ``copyable`` fall back to catalog knowledge.
    """

    copyable: Mapping[int, bool] = field(default_factory=dict)
    mov_text: Mapping[int, bool] = field(default_factory=dict)


def known_compatible(stream: StreamDescriptor, policy: ProcessingPolicy) -> bool | None:
    """Return whether ``stream`` is known to copy into MP4, or ``None`` if it must be probed.

    Streams that will never be copied into a rewritten output count as known.
    """
    preserve = policy.container.preserve_unrecognized
    match stream.kind:
        case StreamKind.VIDEO:
            codec = match_video_codec_by_name(ALL_SOURCE_VIDEO_CODECS, stream.codec_name)
            if codec is not None and codec.info.mp4_muxable:
                return True
            return None
        case StreamKind.THUMBNAIL:
            if stream.codec_name in MP4_FRIENDLY_IMAGE_CODECS:
                return True
            return None if policy.container.metadata is MetadataMode.NONE else False
        case StreamKind.AUDIO:
            if policy.audio.remove:
                return False
            codec = match_audio_codec(ALL_SOURCE_AUDIO_CODECS, stream.codec_name, stream.profile)
            if codec is not None and codec.info.mp4_muxable:
                return True
            return None
        case StreamKind.SUBTITLE:
            if stream.codec_name == MP4_SUBTITLE_CODEC:
                return True
            return None if preserve else False
        case StreamKind.ATTACHMENT | StreamKind.DATA | StreamKind.UNKNOWN:
            return None if preserve else False
        case _:
            assert_never(stream.kind)


def streams_to_probe(inventory: SourceInventory, policy: ProcessingPolicy) -> tuple[StreamDescriptor, ...]:
    """Return the streams whose MP4 compatibility has to be tested with ffmpeg."""
    return tuple(s for s in inventory.streams if known_compatible(s, policy) is None)


def _copyable(stream: StreamDescriptor, policy: ProcessingPolicy, compat: MuxCompatibility) -> bool:
    known = known_compatible(stream, policy)
    if known is not None:
        return known
    return compat.copyable.get(stream.index, False)


@dataclass
class _Context:
    """Shared inputs for one decision pass."""

    policy: ProcessingPolicy
    compat: MuxCompatibility
    encoders: set[Encoder]
    check_mux: bool

    def muxable(self, stream: StreamDescriptor) -> bool:
        return not self.check_mux or _copyable(stream, self.policy, self.compat)


def _reencode_choice(mode: ReencodeMode, *, copy_ok: bool) -> tuple[bool, bool]:
    """Return ``(reencode, size_candidate)`` for a stream under ``mode``."""
    match mode:
        case ReencodeMode.AVOID_REENCODING:
            return not copy_ok, False
        case ReencodeMode.ALWAYS:
            return True, False
        case ReencodeMode.SELECT_SMALLEST:
            return True, copy_ok
        case _:
            assert_never(mode)


def _decide_video(stream: StreamDescriptor, ctx: _Context) -> StreamDecision:
    options = ctx.policy.video
    exact = match_video_codec(options.result_codecs, stream.codec_name, stream.codec_tag)
    by_name = match_video_codec_by_name(options.result_codecs, stream.codec_name)
    retag = None
    if exact is None and by_name is not None and by_name.info.tag is not None:
        retag = by_name.info.tag
    reasons = list(video_triggers(stream, options))
    if exact is None and retag is None:
        reasons.append("codec")
    if not ctx.muxable(stream):
        reasons.append("container")
    copy_ok = not reasons
    reencode, candidate = _reencode_choice(options.reencode, copy_ok=copy_ok)
    copy_action = StreamAction.REMUX if retag is not None else StreamAction.COPY
    if not reencode:
        return StreamDecision(stream, copy_action, retag=retag, reason=", ".join(reasons))

    try:
        params = derive_video_params(stream, options)
    except ResizeInfeasible:
        if not copy_ok:
            raise
        logger.debug("Stream %s cannot be resized; keeping the original", stream.index)
        return StreamDecision(stream, copy_action, retag=retag, reason="resize infeasible")
    encoder = options.encode_codec.info.encoder
    if encoder is not None:
        require_encoder(encoder, ctx.encoders)
    return StreamDecision(
        stream,
        StreamAction.REENCODE,
        retag=retag,
        video=params,
        size_candidate=candidate,
        reason=", ".join(reasons) or options.reencode.value,
    )


def _decide_audio(stream: StreamDescriptor, ctx: _Context) -> StreamDecision:
    options = ctx.policy.audio
    if options.remove:
        return StreamDecision(stream, StreamAction.OMIT, reason="audio removed")
    reasons = list(audio_triggers(stream, options))
    if match_audio_codec(options.result_codecs, stream.codec_name, stream.profile) is None:
        reasons.append("codec")
    if not ctx.muxable(stream):
        reasons.append("container")
    copy_ok = not reasons
    reencode, candidate = _reencode_choice(options.reencode, copy_ok=copy_ok)
    if not reencode:
        return StreamDecision(stream, StreamAction.COPY)
    best_aac_encoder(ctx.encoders)
    return StreamDecision(
        stream,
        StreamAction.REENCODE,
        audio=derive_audio_params(stream, options, ctx.encoders),
        size_candidate=candidate,
        reason=", ".join(reasons) or options.reencode.value,
    )


def _decide_other(stream: StreamDescriptor, ctx: _Context) -> StreamDecision:
    container = ctx.policy.container
    if stream.kind is StreamKind.THUMBNAIL:
        if container.metadata.strips_thumbnails:
            return StreamDecision(stream, StreamAction.OMIT, reason="thumbnail")
        if ctx.muxable(stream):
            return StreamDecision(stream, StreamAction.COPY)
        return StreamDecision(stream, StreamAction.OMIT, reason="container")
    if not container.preserve_unrecognized:
        return StreamDecision(stream, StreamAction.OMIT, reason="unrecognized")
    if ctx.muxable(stream):
        return StreamDecision(stream, StreamAction.COPY)
    if stream.kind is StreamKind.SUBTITLE and ctx.compat.mov_text.get(stream.index, False):
        return StreamDecision(stream, StreamAction.REENCODE, subtitle_codec=MP4_SUBTITLE_CODEC, reason="subtitle")
    return StreamDecision(stream, StreamAction.OMIT, reason="container")


def _decide(inventory: SourceInventory, ctx: _Context) -> list[StreamDecision]:
    decisions: list[StreamDecision] = []
    for stream in inventory.streams:
        match stream.kind:
            case StreamKind.VIDEO:
                decisions.append(_decide_video(stream, ctx))
            case StreamKind.AUDIO:
                decisions.append(_decide_audio(stream, ctx))
            case _:
                decisions.append(_decide_other(stream, ctx))
    return decisions


def _rewrite_reasons(
    inventory: SourceInventory,
    policy: ProcessingPolicy,
    source_format: ContainerFormat,
    decisions: list[StreamDecision],
) -> list[str]:
    """Return why the output must be rewritten.

    Pick-smallest re-encodes do not force a rewrite on their own; a
    candidate that needs retagging does.
    """
    container = policy.container
    reasons: list[str] = []
    if source_format not in container.result_formats:
        reasons.append("container format")
    match container.metadata:
        case MetadataMode.REQUIRED:
            reasons.append("metadata")
            if inventory.thumbnail_streams:
                reasons.append("thumbnails")
        case MetadataMode.THUMBNAIL_ONLY:
            if inventory.thumbnail_streams:
                reasons.append("thumbnails")
        case MetadataMode.NONE | MetadataMode.PREFERRED:
            pass
        case _:
            assert_never(container.metadata)
    if container.force_progressive_download:
        reasons.append("progressive download")
    if inventory.other_streams and not container.preserve_unrecognized:
        reasons.append("unrecognized streams")
    if policy.audio.remove and inventory.audio_streams:
        reasons.append("audio removal")
    if any(d.action is StreamAction.REENCODE and not d.size_candidate for d in decisions):
        reasons.append("re-encode")
    if any(d.retag is not None for d in decisions if d.is_mapped):
        reasons.append("retag")
    return reasons


def _finalize(decisions: list[StreamDecision], policy: ProcessingPolicy) -> tuple[StreamDecision, ...]:
    """Assign output indices and metadata handling to the decisions."""
    map_metadata = not policy.container.metadata.strips_metadata
    counters: dict[StreamKind, int] = {}
    result: list[StreamDecision] = []
    for d in decisions:
        if not d.is_mapped:
            result.append(d)
            continue
        index = counters.get(d.output_kind, 0)
        counters[d.output_kind] = index + 1
        result.append(
            StreamDecision(
                stream=d.stream,
                action=d.action,
                output_index=index,
                map_metadata=map_metadata,
                language=valid_language(d.stream.language),
                retag=d.retag,
                video=d.video,
                audio=d.audio,
                subtitle_codec=d.subtitle_codec,
                size_candidate=d.size_candidate,
                reason=d.reason,
            )
        )
    return tuple(result)


def build_plan(
    inventory: SourceInventory,
    policy: ProcessingPolicy,
    *,
    source: Path,
    source_format: ContainerFormat,
    encoders: set[Encoder],
    compat: MuxCompatibility | None = None,
) -> EncodingPlan:
    """Decide how every stream of ``inventory`` reaches a policy-compliant output.

    The source container is kept when it is an allowed result format and
    nothing forces a rewrite. A rewrite always produces the first result
    format, and streams that cannot be copied into it are re-encoded or
    dropped.

    Raises:
        ResizeInfeasible: If a required video re-encode has no valid size.
        EncoderUnavailable: If a needed encoder is missing.

    """
    compat = compat or MuxCompatibility()
    container = policy.container
    output_format = source_format if source_format in container.result_formats else container.output_format
    ctx = _Context(policy, compat, encoders, check_mux=output_format is not source_format)
    decisions = _decide(inventory, ctx)
    reasons = _rewrite_reasons(inventory, policy, source_format, decisions)
    candidates = any(d.size_candidate for d in decisions)
    if (reasons or candidates) and not output_format.info.writable:
        output_format = container.output_format
        ctx = _Context(policy, compat, encoders, check_mux=True)
        decisions = _decide(inventory, ctx)
        reasons = _rewrite_reasons(inventory, policy, source_format, decisions)
        candidates = any(d.size_candidate for d in decisions)
        reasons.append("container format")

    rewrite = bool(reasons) or candidates
    strip = container.metadata.strips_metadata
    for d in decisions:
        if d.reason:
            logger.debug("Stream %s (%s): %s -> %s", d.stream.index, d.kind.value, d.reason, d.action.value)
    return EncodingPlan(
        source=source,
        source_format=source_format,
        output_format=output_format if rewrite else source_format,
        decisions=_finalize(decisions, policy),
        rewrite=rewrite,
        strip_global_metadata=strip,
        strip_chapters=strip,
        faststart=container.force_progressive_download,
        remux_guaranteed=bool(reasons),
        reasons=tuple(dict.fromkeys(reasons)),
    )


__all__ = ["MuxCompatibility", "build_plan", "known_compatible", "streams_to_probe"]
