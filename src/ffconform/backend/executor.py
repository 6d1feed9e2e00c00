"""Run the conform pipeline: validate, plan, encode and arbitrate."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import tempfile
from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from ffconform.errors import CANCELLED, CONVERSION_FAILED, Cancelled, EncodeFailure, NoChangeFailure, ProcessingError
from ffconform.models.context import RuntimeContext
from ffconform.models.options import OUTPUT_SUFFIX, Options, ProcessingPolicy
from ffconform.models.plan import ProcessingResult
from ffconform.models.types import StreamKind
from ffconform.models.verbosity import Verbosity
from ffconform.tools import probe
from ffconform.tools.capabilities import available_encoders, stream_copies_to_mp4, subtitle_converts_to_mov_text
from ffconform.tools.cli import format_ffmpeg_cmd, run_ffmpeg_with_progress
from ffconform.tools.helpers import emit_status, format_action_label, maybe_log_command

from . import arbitration, validator
from .builder import build_main, build_mix
from .planner import MuxCompatibility, build_plan, streams_to_probe
from .progress import (
    COMPATIBILITY_SHARE,
    MAIN_PASS_END,
    MIX_RESERVE,
    SIZE_CHECK_END,
    VALIDATION_END,
    ProgressTracker,
)

if TYPE_CHECKING:
    from ffconform.models.catalog import ContainerFormat
    from ffconform.models.ffprobe import SourceInventory
    from ffconform.models.plan import EncodingPlan

NO_CHANGE = "File processing did not result in any changes to the source file."

logger = logging.getLogger(__name__)


def default_output_path(source: Path, output_format: ContainerFormat) -> Path:
    """Return ``<stem>_conformed<ext>`` next to ``source``."""
    return source.with_name(f"{source.stem}{OUTPUT_SUFFIX}{output_format.extension}")


def _check_cancelled(ctx: RuntimeContext) -> None:
    if ctx.cancelled:
        raise Cancelled(CANCELLED)


def _ensure_output_parent(path: Path, ctx: RuntimeContext) -> None:
    """Create the output parent directory if missing.

    Raises:
        EncodeFailure: If the parent exists but is not a directory, or cannot
            be created.

    """
    parent = path.parent
    if parent.exists():
        if not parent.is_dir():
            raise EncodeFailure(f"{CONVERSION_FAILED}: Output directory parent is not a directory: {parent}")
        return
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:  # pragma: no cover - filesystem errors depend on env
        raise EncodeFailure(f"{CONVERSION_FAILED}: {e}") from e
    if ctx.verbosity > Verbosity.QUIET:
        emit_status(f"Created output directory: {parent}", status_callback=ctx.status_callback)


def _run_pass(
    ctx: RuntimeContext,
    args: tuple[str, ...],
    on_time: Callable[[float], None],
    commands: list[tuple[str, ...]],
) -> None:
    """Run one progress-reporting ffmpeg pass.

    Raises:
        EncodeFailure: If ffmpeg cannot be started or exits with an error.

    """
    commands.append(args)
    maybe_log_command(
        verbosity=ctx.verbosity,
        status_callback=ctx.status_callback,
        banner=f"{format_action_label()}: {format_ffmpeg_cmd(args)}",
    )
    try:
        run_ffmpeg_with_progress(
            args,
            on_time=on_time,
            cancel_event=ctx.cancel_event,
            verbose=ctx.verbosity >= Verbosity.OUTPUT,
            status_callback=ctx.status_callback,
        )
    except subprocess.CalledProcessError as e:
        logger.warning("ffmpeg exited with status %s", e.returncode)
        raise EncodeFailure(f"{CONVERSION_FAILED}: ffmpeg exited with status {e.returncode}", output=e.output) from e
    except OSError as e:
        raise EncodeFailure(f"{CONVERSION_FAILED}: {e}") from e


def _probe_compatibility(
    ctx: RuntimeContext,
    source: Path,
    inventory: SourceInventory,
    policy: ProcessingPolicy,
    on_progress: Callable[[float], None],
) -> MuxCompatibility:
    """Test-copy every stream whose MP4 compatibility is not known from the catalog."""
    streams = streams_to_probe(inventory, policy)
    copyable: dict[int, bool] = {}
    mov_text: dict[int, bool] = {}
    for i, stream in enumerate(streams):
        _check_cancelled(ctx)
        copyable[stream.index] = stream_copies_to_mp4(ctx, source, stream.index)
        if not copyable[stream.index] and stream.kind is StreamKind.SUBTITLE:
            mov_text[stream.index] = subtitle_converts_to_mov_text(ctx, source, stream.index)
        on_progress((i + 1) / (len(streams) + 2))
    if streams:
        logger.debug("MP4 compatibility: copy=%s mov_text=%s", copyable, mov_text)
    return MuxCompatibility(copyable=copyable, mov_text=mov_text)


def _unchanged(
    source: Path,
    plan: EncodingPlan,
    policy: ProcessingPolicy,
    tracker: ProgressTracker,
    commands: list[tuple[str, ...]],
) -> ProcessingResult:
    if policy.require_changes:
        raise NoChangeFailure(NO_CHANGE)
    tracker.finish()
    return ProcessingResult(output=source, changed=False, plan=plan, commands=tuple(commands))


def _process(
    source: Path,
    output: Path | None,
    policy: ProcessingPolicy,
    ctx: RuntimeContext,
) -> ProcessingResult:
    tracker = ProgressTracker(ctx.progress_callback)
    commands: list[tuple[str, ...]] = []
    validator.check_extension(source, policy)
    _check_cancelled(ctx)
    inventory = probe.probe_source(ctx, source)
    temp_dir = Path(tempfile.mkdtemp(prefix="ffconform-", dir=ctx.temp_root))
    try:
        source_format = validator.identify_format(ctx, source, inventory, policy, temp_dir)
        validator.check_streams(inventory, policy)

        used = 0.0
        duration = inventory.longest_duration
        if policy.validate_all_streams:
            measured = validator.measure_duration(
                ctx,
                source,
                inventory,
                policy,
                on_progress=tracker.span(0.0, VALIDATION_END),
                commands=commands,
            )
            used = VALIDATION_END
            if measured > 0:
                duration = measured
        _check_cancelled(ctx)

        compat = MuxCompatibility()
        if source_format not in policy.container.result_formats or not source_format.info.writable:
            compat = _probe_compatibility(
                ctx, source, inventory, policy, tracker.span(used, used + COMPATIBILITY_SHARE)
            )
        used += COMPATIBILITY_SHARE
        tracker.report(used)

        plan = build_plan(
            inventory,
            policy,
            source=source,
            source_format=source_format,
            encoders=available_encoders(ctx),
            compat=compat,
        )
        logger.debug("Plan for %s: rewrite=%s reasons=%s", source, plan.rewrite, plan.reasons)
        if plan.returns_source:
            return _unchanged(source, plan, policy, tracker, commands)

        _check_cancelled(ctx)
        target = output or default_output_path(source, plan.output_format)
        encoded = temp_dir / f"encoded{plan.output_format.extension}"
        _run_pass(ctx, build_main(plan, encoded), tracker.timed(used, MAIN_PASS_END, duration), commands)
        tracker.report(MAIN_PASS_END)
        result_path = encoded

        if plan.size_candidates:
            comparisons = arbitration.compare_sizes(
                ctx,
                plan,
                encoded,
                temp_dir,
                on_progress=tracker.span(MAIN_PASS_END, SIZE_CHECK_END),
                commands=commands,
            )
            selection = arbitration.select(plan, comparisons)
            plan = arbitration.resolved_plan(plan, comparisons)
            if selection is arbitration.Selection.SOURCE:
                return _unchanged(source, plan, policy, tracker, commands)
            if selection is arbitration.Selection.MIX:
                _check_cancelled(ctx)
                result_path = temp_dir / f"mixed{plan.output_format.extension}"
                mix_end = SIZE_CHECK_END + (1.0 - SIZE_CHECK_END) * (1.0 - MIX_RESERVE)
                _run_pass(
                    ctx,
                    build_mix(plan, encoded, result_path, arbitration.source_positions(comparisons)),
                    tracker.timed(SIZE_CHECK_END, mix_end, duration),
                    commands,
                )

        _ensure_output_parent(target, ctx)
        shutil.move(result_path, target)
        tracker.finish()
        return ProcessingResult(output=target, changed=True, plan=plan, commands=tuple(commands))
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


def process(
    source: str | Path,
    output: str | Path | None = None,
    policy: ProcessingPolicy | None = None,
    ctx: RuntimeContext | None = None,
) -> ProcessingResult:
    """Conform ``source`` to ``policy`` and return where the result lives.

    When the source already satisfies the policy the result points at the
    source itself and ``changed`` is ``False``. Otherwise the output is
    written to ``output`` (default ``<stem>_conformed<ext>``).

    Raises:
        ProcessingError: If validation, planning or encoding fails.
        Cancelled: If ``ctx.cancel_event`` is set while processing.

    """
    own_ctx = ctx is None
    runtime = RuntimeContext() if ctx is None else ctx
    try:
        return _process(
            Path(source),
            None if output is None else Path(output),
            policy or ProcessingPolicy(),
            runtime,
        )
    finally:
        if own_ctx:
            runtime.close()


def ffconform(
    opts: Options,
    status_callback: Annotated[Callable[[str], None] | None, Parameter(show=False)] = None,  # type: ignore[call-arg]
) -> int:
    """Conform a media file to a processing policy."""
    status_func = print if status_callback is None else status_callback
    err_func = partial(print, file=sys.stderr, flush=True) if status_callback is None else status_callback

    def on_progress(value: float) -> None:
        emit_status(f"Progress: {value:6.1%}\r", status_callback=status_func)

    with RuntimeContext(
        verbosity=opts.runtime.verbosity,
        status_callback=status_func,
        progress_callback=on_progress if opts.runtime.progress else None,
    ) as runtime:
        try:
            result = process(opts.source, opts.output, opts.resolved_policy(), runtime)
        except Cancelled as e:
            err_func(str(e))
            return 2
        except ProcessingError as e:
            err_func(e.message)
            if e.output and opts.runtime.verbosity >= Verbosity.COMMANDS:
                err_func(e.output.rstrip())
            return 1
    if opts.runtime.progress:
        emit_status("", status_callback=status_func)
    if not result.changed:
        emit_status(f"Source already conforms: {result.output.absolute()}", status_callback=status_func)
        return 0
    emit_status(str(result.output.absolute()), status_callback=status_func)
    return 0


__all__ = ["NO_CHANGE", "default_output_path", "ffconform", "process"]
