"""Pipeline execution: stages connected by anonymous pipes.

Every stage gets its own process. The first stage execs as soon as it is
spawned. Each later stage drains its incoming pipe into an unlinked spool
file and then waits on a gate pipe; the orchestrator opens the gate only
after the previous stage exited with status 0. A failing stage aborts the
pipeline: the remaining programs never run and their processes are reaped.

Only the first stage honors its input redirection and only the last stage
honors its output redirection.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from functools import partial
from typing import IO

from loguru import logger

from forksh.config import Settings
from forksh.core.types import Pipeline, Stage
from forksh.errors import SpawnError
from forksh.logging_utils import report_error
from forksh.process.redirect import STDIN_FILENO, STDOUT_FILENO, DescriptorSet, apply_redirections, redirect_onto
from forksh.process.spawn import exec_program, spawn, wait_for

GATE_OPEN = b"\x01"
ABORTED_STATUS = 1


@dataclass(frozen=True)
class _Link:
    """Data and gate pipes between one stage and the next."""

    data_read: int
    data_write: int
    gate_read: int
    gate_write: int


@dataclass(frozen=True)
class _StageSlot:
    index: int
    stage: Stage
    inbound: _Link | None = None
    outbound: _Link | None = None

    @property
    def position(self) -> int:
        return self.index + 1

    def child_fds(self) -> list[int]:
        fds: list[int] = []
        if self.inbound is not None:
            fds += [self.inbound.data_read, self.inbound.gate_read]
        if self.outbound is not None:
            fds.append(self.outbound.data_write)
        return fds


def run_pipeline(pipeline: Pipeline, settings: Settings) -> int:
    """Run every stage of ``pipeline`` and return the pipeline's status."""

    with DescriptorSet() as fds:
        slots = _plan(pipeline, fds)
        pids: list[int] = []
        try:
            for slot in slots:
                pids.append(spawn(partial(_stage_child, slot, fds, settings), label=slot.stage.name))
        except SpawnError:
            _abort(pids, fds)
            raise

        fds.close_all(keep=[slot.inbound.gate_write for slot in slots if slot.inbound is not None])
        return _await_stages(slots, pids, fds)


def _plan(pipeline: Pipeline, fds: DescriptorSet) -> list[_StageSlot]:
    stages = pipeline.stages
    links = [
        _Link(*fds.pipe(f"data{index + 1}"), *fds.pipe(f"gate{index + 2}")) for index in range(len(stages) - 1)
    ]
    slots = [
        _StageSlot(
            index=index,
            stage=stage,
            inbound=links[index - 1] if index > 0 else None,
            outbound=links[index] if index < len(links) else None,
        )
        for index, stage in enumerate(stages)
    ]

    for slot in slots[1:]:
        if slot.stage.input_source is not None:
            logger.debug("pipeline.ignore_input stage={} path={}", slot.position, slot.stage.input_source)
    for slot in slots[:-1]:
        if slot.stage.output_target is not None:
            logger.debug("pipeline.ignore_output stage={} path={}", slot.position, slot.stage.output_target)
    return slots


def _stage_child(slot: _StageSlot, fds: DescriptorSet, settings: Settings) -> int:
    fds.close_all(keep=slot.child_fds())
    stage = slot.stage

    if slot.inbound is None:
        apply_redirections(stage, create_mode=settings.create_mode, honor_output=False)
    else:
        spool = _drain(slot.inbound.data_read, fds)
        if not _wait_for_gate(slot.inbound.gate_read, fds):
            return ABORTED_STATUS
        os.dup2(spool.fileno(), STDIN_FILENO)
        spool.close()

    if slot.outbound is None:
        apply_redirections(stage, create_mode=settings.create_mode, honor_input=False)
    else:
        redirect_onto(fds.release(slot.outbound.data_write), STDOUT_FILENO)

    context = "" if slot.index == 0 else f"pipeline stage {slot.position} failed: "
    return exec_program(stage.argv, failure_status=settings.exec_failure_status, context=context)


def _drain(read_fd: int, fds: DescriptorSet) -> IO[bytes]:
    spool = tempfile.TemporaryFile()
    with os.fdopen(fds.release(read_fd), "rb", buffering=0) as source:
        shutil.copyfileobj(source, spool)
    spool.flush()
    spool.seek(0)
    return spool


def _wait_for_gate(gate_fd: int, fds: DescriptorSet) -> bool:
    with os.fdopen(fds.release(gate_fd), "rb", buffering=0) as gate:
        return gate.read(1) == GATE_OPEN


def _open_gate(gate_fd: int, fds: DescriptorSet, position: int) -> None:
    try:
        os.write(gate_fd, GATE_OPEN)
    except BrokenPipeError:
        logger.debug("pipeline.gate_closed stage={}", position)
    finally:
        fds.close(gate_fd)


def _await_stages(slots: list[_StageSlot], pids: list[int], fds: DescriptorSet) -> int:
    status = 0
    for slot, pid in zip(slots, pids):
        if slot.inbound is not None:
            _open_gate(slot.inbound.gate_write, fds, slot.position)
        status = wait_for(pid)
        if status != 0 and slot.outbound is not None:
            report_error(
                f"forksh: pipeline aborted: stage {slot.position} ({slot.stage.name}) exited with status {status}"
            )
            _abort(pids[slot.index + 1 :], fds)
            return status
    return status


def _abort(pids: list[int], fds: DescriptorSet) -> None:
    # Closing every gate without the open byte lets waiting stages exit unrun.
    fds.close_all()
    for pid in pids:
        wait_for(pid)
    logger.debug("pipeline.abort reaped={}", pids)
