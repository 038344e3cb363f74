"""Correlate a workflow run with the pull request or issue it belongs to."""

from __future__ import annotations

import logging
import re

from tf_bot.github.event_context import EventContext, EventKind

logger = logging.getLogger(__name__)

CORRELATED_EVENT_KINDS = {EventKind.PULL_REQUEST, EventKind.PUSH}
ISSUE_REF_RE = re.compile(r"#(\d+)")


def issue_number_from_message(message: str | None) -> int | None:
    """Return the first ``#<digits>`` reference in a commit message."""

    if not message:
        return None
    match = ISSUE_REF_RE.search(message)
    if match is None:
        return None
    return int(match.group(1))


def resolve_issue_number(ctx: EventContext) -> int | None:
    # Schedules, dispatches and issue events are never correlated, even when
    # the payload carries an issue number.
    if ctx.event_kind not in CORRELATED_EVENT_KINDS:
        logger.debug("No issue correlation for %s events", ctx.event_kind.value)
        return None

    if ctx.has_pull_request:
        logger.debug("Get Issue Number off pull request payload")
        if ctx.pull_request_number is not None:
            return ctx.pull_request_number
    elif ctx.issue_number is not None:
        logger.debug("Get Issue Number off issue payload")
        return ctx.issue_number

    logger.debug("No issue number, trying head commit message: %r", ctx.head_commit_message)
    number = issue_number_from_message(ctx.head_commit_message)
    logger.debug("Issue Number: %s", number)
    return number
