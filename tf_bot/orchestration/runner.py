"""Terraform lifecycle orchestration for a single workflow run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from tf_bot.github.event_context import EventContext
from tf_bot.github.github_connector import CommentPublisher, build_publisher_from_env
from tf_bot.orchestration.apply_policy import should_apply
from tf_bot.orchestration.executor import CommandExecutor
from tf_bot.orchestration.issue_resolver import resolve_issue_number
from tf_bot.orchestration.pipeline import (
    CommandPipeline,
    PlanOutcome,
    PlanResult,
    StageFailedError,
    StageResult,
    uses_detailed_exitcode,
)
from tf_bot.orchestration.reporting import (
    CommentKind,
    apply_comment_prefix,
    format_comment,
    plan_comment_prefix,
    publish_comment,
)
from tf_bot.shared.actions import set_output
from tf_bot.shared.settings import RunConfiguration, locate_terraform

logger = logging.getLogger(__name__)

PLAN_EXIT_CODE_OUTPUT = "exitcode"

OutputSink = Callable[[str, object], object]


@dataclass(frozen=True)
class RunResult:
    issue_number: int | None
    apply_verdict: bool
    post_comments: bool
    stages: tuple[StageResult, ...] = ()
    plan: PlanResult | None = None
    apply: StageResult | None = None
    comment_failed: bool = False
    errors: tuple[str, ...] = ()

    @property
    def plan_exit_code(self) -> int | None:
        return self.plan.exit_code if self.plan is not None else None

    @property
    def plan_outcome(self) -> PlanOutcome | None:
        return self.plan.outcome if self.plan is not None else None

    @property
    def drift_detected(self) -> bool:
        return self.plan_outcome is PlanOutcome.DRIFT

    @property
    def applied(self) -> bool:
        return self.apply is not None

    @property
    def failed(self) -> bool:
        return bool(self.errors) or self.comment_failed


class LifecycleRunner:
    def __init__(
        self,
        ctx: EventContext,
        config: RunConfiguration,
        pipeline: CommandPipeline,
        publisher: CommentPublisher,
        output_sink: OutputSink | None = None,
    ) -> None:
        self.ctx = ctx
        self.issue_number = resolve_issue_number(ctx)
        self.apply_verdict = should_apply(
            ctx,
            config.apply_on_default_branch_only,
            config.apply_on_pull_request,
        )
        self.config = config.with_correlation(self.issue_number)
        self.pipeline = pipeline
        self.publisher = publisher
        self.output_sink = output_sink or set_output

    def run(self) -> RunResult:
        logger.info(
            "Event %s: issue=%s apply=%s comments=%s",
            self.ctx.event_kind.value,
            self.issue_number,
            self.apply_verdict,
            self.config.post_comments,
        )
        stages: list[StageResult] = []
        plan: PlanResult | None = None
        applied: StageResult | None = None
        errors: list[str] = []
        comment_failed = False

        try:
            stages.append(self.pipeline.init(upgrade=self.config.run_upgrade_on_init))
            if self.config.run_validate:
                stages.append(self.pipeline.validate())
            stages.append(self.pipeline.refresh())

            plan = self.pipeline.plan(
                detailed_exitcode=uses_detailed_exitcode(self.ctx, self.config.detect_drift)
            )
            stages.append(plan.stage)
            self.output_sink(PLAN_EXIT_CODE_OUTPUT, plan.exit_code)
            plan_output = plan.captured_output
            if plan.outcome is PlanOutcome.FAILURE:
                errors.append(plan.error_message)
                plan_output += plan.stage.error_output

            if self.config.post_comments:
                logger.info("Add Plan Output as a Comment to PR")
                comment_failed |= not self._comment(
                    plan_comment_prefix(
                        self.config.comment_prefix,
                        plan.outcome,
                        self.apply_verdict,
                    ),
                    plan_output,
                    CommentKind.PLAN,
                )

            if self.apply_verdict and plan.allows_apply:
                applied = self.pipeline.apply()
                stages.append(applied)
                if self.config.post_comments:
                    logger.info("Add Apply Output as a Comment to PR")
                    comment_failed |= not self._comment(
                        apply_comment_prefix(self.config.comment_prefix),
                        applied.captured_output,
                        CommentKind.APPLY,
                    )
            elif self.apply_verdict:
                logger.info("Skipping apply: plan exited with code %s", plan.exit_code)
        except StageFailedError as exc:
            logger.error("%s", exc.error_output)
            errors.append(str(exc))
            stages.append(exc.stage)

        return RunResult(
            issue_number=self.issue_number,
            apply_verdict=self.apply_verdict,
            post_comments=self.config.post_comments,
            stages=tuple(stages),
            plan=plan,
            apply=applied,
            comment_failed=comment_failed,
            errors=tuple(errors),
        )

    def _comment(self, prefix: str, output: str, kind: CommentKind) -> bool:
        body = format_comment(
            prefix,
            output,
            self.ctx.repo_owner,
            self.ctx.repo_name,
            self.ctx.run_id,
            server_url=self.ctx.server_url,
        )
        return publish_comment(self.publisher, self.ctx, self.issue_number, body, kind)


def run_from_env(
    env: Mapping[str, str] | None = None,
    executor: CommandExecutor | None = None,
    publisher: CommentPublisher | None = None,
) -> RunResult:
    """Build every collaborator from the runner environment and execute the lifecycle."""

    ctx = EventContext.from_env(env)
    config = RunConfiguration.from_env(env)
    logger.debug("Configuration: %s", config.redacted())
    terraform_path = locate_terraform(env)
    runner = LifecycleRunner(
        ctx,
        config,
        CommandPipeline.from_config(terraform_path, config, executor=executor),
        publisher or build_publisher_from_env(env, auth=config.auth),
        output_sink=lambda name, value: set_output(name, value, env),
    )
    return runner.run()
