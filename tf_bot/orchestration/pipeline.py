"""Terraform lifecycle stages and exit-code interpretation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from tf_bot.github.event_context import EventContext, EventKind
from tf_bot.orchestration.executor import (
    CommandExecutor,
    CommandFailedError,
    ExecOptions,
    SubprocessExecutor,
)
from tf_bot.shared.settings import DEFAULT_PLAN_ARTIFACT, RunConfiguration

logger = logging.getLogger(__name__)

DRIFT_DETECTION_KINDS = {EventKind.SCHEDULE, EventKind.WORKFLOW_DISPATCH}

EXIT_NO_CHANGES = 0
EXIT_ERROR = 1
EXIT_CHANGES_PRESENT = 2


class PlanOutcome(str, Enum):
    SUCCESS = "success"
    DRIFT = "drift"
    FAILURE = "failure"


@dataclass(frozen=True)
class StageResult:
    stage_name: str
    captured_output: str
    exit_code: int
    error_output: str = ""


@dataclass(frozen=True)
class PlanResult:
    stage: StageResult
    outcome: PlanOutcome
    detailed_exitcode: bool

    @property
    def exit_code(self) -> int:
        return self.stage.exit_code

    @property
    def captured_output(self) -> str:
        return self.stage.captured_output

    @property
    def allows_apply(self) -> bool:
        return self.stage.exit_code == EXIT_NO_CHANGES

    @property
    def error_message(self) -> str:
        if self.outcome is not PlanOutcome.FAILURE:
            return ""
        details = self.stage.captured_output + self.stage.error_output
        return f"Terraform plan failed with exit code {self.exit_code}\n{details}"


class StageFailedError(RuntimeError):
    """A stage exited non-zero where that is fatal for the run."""

    def __init__(self, stage: StageResult, message: str) -> None:
        super().__init__(message)
        self.stage = stage

    @property
    def stage_name(self) -> str:
        return self.stage.stage_name

    @property
    def exit_code(self) -> int:
        return self.stage.exit_code

    @property
    def error_output(self) -> str:
        return self.stage.error_output


def uses_detailed_exitcode(ctx: EventContext, detect_drift: bool) -> bool:
    return detect_drift and ctx.event_kind in DRIFT_DETECTION_KINDS


def classify_plan_exit(exit_code: int, detailed_exitcode: bool) -> PlanOutcome:
    if exit_code == EXIT_NO_CHANGES:
        return PlanOutcome.SUCCESS
    if detailed_exitcode and exit_code == EXIT_CHANGES_PRESENT:
        return PlanOutcome.DRIFT
    return PlanOutcome.FAILURE


class _OutputBuffer:
    def __init__(self) -> None:
        self._data = bytearray()

    def append(self, chunk: bytes) -> None:
        self._data.extend(chunk)

    @property
    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")


class CommandPipeline:
    """Runs terraform subcommands in order; every stage captures only its own output."""

    def __init__(
        self,
        terraform_path: str,
        executor: CommandExecutor | None = None,
        cwd: str | Path | None = None,
        plan_artifact: str = DEFAULT_PLAN_ARTIFACT,
    ) -> None:
        self.terraform_path = terraform_path
        self.executor = executor or SubprocessExecutor()
        self.cwd = cwd
        self.plan_artifact = plan_artifact

    @classmethod
    def from_config(
        cls,
        terraform_path: str,
        config: RunConfiguration,
        executor: CommandExecutor | None = None,
    ) -> "CommandPipeline":
        return cls(
            terraform_path,
            executor=executor,
            cwd=config.cwd,
            plan_artifact=config.plan_artifact,
        )

    def _run_stage(
        self,
        stage_name: str,
        args: Sequence[str],
        ignore_non_zero_exit: bool = False,
    ) -> StageResult:
        stdout = _OutputBuffer()
        stderr = _OutputBuffer()
        options = ExecOptions(
            cwd=self.cwd,
            ignore_non_zero_exit=ignore_non_zero_exit,
            on_stdout=stdout.append,
            on_stderr=stderr.append,
        )
        try:
            exit_code = self.executor.run(self.terraform_path, list(args), options)
        except CommandFailedError as exc:
            stage = StageResult(
                stage_name=stage_name,
                captured_output=stdout.text,
                exit_code=exc.exit_code,
                error_output=stderr.text,
            )
            raise StageFailedError(stage, str(exc)) from exc
        return StageResult(
            stage_name=stage_name,
            captured_output=stdout.text,
            exit_code=exit_code,
            error_output=stderr.text,
        )

    def init(self, upgrade: bool = False) -> StageResult:
        logger.info("Initialize Terraform")
        args = ["init", "-upgrade"] if upgrade else ["init"]
        return self._run_stage("init", args)

    def validate(self) -> StageResult:
        logger.info("Validate Terraform Code")
        return self._run_stage("validate", ["validate"])

    def refresh(self) -> StageResult:
        logger.info("Refresh Terraform State")
        return self._run_stage("refresh", ["refresh"])

    def plan(self, detailed_exitcode: bool = False) -> PlanResult:
        logger.info("Run Terraform Plan")
        args = ["plan", "-refresh=false", "-no-color", f"-out={self.plan_artifact}"]
        if detailed_exitcode:
            args.append("-detailed-exitcode")
        # Outside detailed mode any non-zero exit is fatal and raises here.
        stage = self._run_stage("plan", args, ignore_non_zero_exit=detailed_exitcode)
        outcome = classify_plan_exit(stage.exit_code, detailed_exitcode)
        if outcome is PlanOutcome.DRIFT:
            logger.info("Terraform plan detected drift (exit code %s)", stage.exit_code)
        elif outcome is PlanOutcome.FAILURE:
            logger.error("Terraform plan failed with exit code %s", stage.exit_code)
        return PlanResult(stage=stage, outcome=outcome, detailed_exitcode=detailed_exitcode)

    def apply(self) -> StageResult:
        logger.info("Apply Terraform")
        return self._run_stage("apply", ["apply", "-auto-approve", "-no-color", self.plan_artifact])
