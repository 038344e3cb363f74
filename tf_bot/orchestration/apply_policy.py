"""Decide whether the apply stage may run for a trigger event."""

from __future__ import annotations

import logging

from tf_bot.github.event_context import EventContext, EventKind

logger = logging.getLogger(__name__)

ALWAYS_APPLY_KINDS = {EventKind.REPOSITORY_DISPATCH, EventKind.SCHEDULE}
BRANCH_SCOPED_KINDS = {EventKind.PUSH, EventKind.WORKFLOW_DISPATCH}


def is_default_branch(ctx: EventContext) -> bool:
    branch = ctx.branch_name
    return branch is not None and branch == ctx.repository_default_branch


def should_apply(
    ctx: EventContext,
    apply_on_default_branch_only: bool,
    apply_on_pull_request: bool,
) -> bool:
    if ctx.event_kind in ALWAYS_APPLY_KINDS:
        verdict = True
    elif ctx.event_kind is EventKind.PULL_REQUEST:
        verdict = apply_on_pull_request
    elif ctx.event_kind in BRANCH_SCOPED_KINDS:
        verdict = not apply_on_default_branch_only or is_default_branch(ctx)
    else:
        verdict = False

    logger.debug(
        "Apply verdict for %s (ref=%s, default_branch=%s): %s",
        ctx.event_kind.value,
        ctx.ref_name,
        ctx.repository_default_branch,
        verdict,
    )
    return verdict
