"""
    Remediation dispatch: which routine fixes which issue category.

    plan() turns a probe's structured Diagnosis into an ordered list of
    RemediationRequests; dispatch() runs exactly one of them.
"""
from __future__ import annotations

import logging
import subprocess
from typing import Callable

from core.models import Diagnosis, RemediationCategory, RemediationRequest
from remediation.limits_fix import fix_ulimits
from remediation.locale_fix import fix_locale
from remediation.packages import fix_java, fix_packages, fix_repositories
from remediation.timesync import fix_time_sync

logger = logging.getLogger(__name__)

Remediation = Callable[..., bool]


def default_routines() -> dict[RemediationCategory, Remediation]:
    return {
        RemediationCategory.LOCALE: fix_locale,
        RemediationCategory.ULIMITS: fix_ulimits,
        RemediationCategory.PACKAGES: fix_packages,
        RemediationCategory.REPOSITORIES: fix_repositories,
        RemediationCategory.JAVA: fix_java,
        RemediationCategory.TIME_SYNC: fix_time_sync,
    }


class RemediationDispatcher:
    def __init__(self, routines: dict[RemediationCategory, Remediation] | None = None):
        self.routines = default_routines() if routines is None else dict(routines)

    def plan(self, category: RemediationCategory, diagnosis: Diagnosis) -> list[RemediationRequest]:
        """
        Requests to run for a failed check registered under category.

        Ordering rules:
          - ulimits: limits first, then time sync (both live in the limits check)
          - software: packages, then repositories, then java; package and
            repository fixes can unblock the java install
        Only issues present in the diagnosis produce a request.
        """
        requests: list[RemediationRequest] = []

        if category is RemediationCategory.LOCALE:
            if diagnosis.locale:
                requests.append(RemediationRequest(category, (diagnosis.locale,)))

        elif category is RemediationCategory.ULIMITS:
            if diagnosis.ulimits:
                requests.append(RemediationRequest(category, diagnosis.ulimits))
            if diagnosis.time_sync:
                requests.append(RemediationRequest(RemediationCategory.TIME_SYNC))

        elif category is RemediationCategory.SOFTWARE:
            if diagnosis.missing_packages:
                requests.append(RemediationRequest(RemediationCategory.PACKAGES, (list(diagnosis.missing_packages),)))
            if diagnosis.missing_repos:
                requests.append(RemediationRequest(RemediationCategory.REPOSITORIES, (list(diagnosis.missing_repos),)))
            if diagnosis.java_versions:
                requests.append(RemediationRequest(RemediationCategory.JAVA, (list(diagnosis.java_versions),)))

        elif category is RemediationCategory.PACKAGES:
            if diagnosis.missing_packages:
                requests.append(RemediationRequest(category, (list(diagnosis.missing_packages),)))

        elif category is RemediationCategory.REPOSITORIES:
            if diagnosis.missing_repos:
                requests.append(RemediationRequest(category, (list(diagnosis.missing_repos),)))

        elif category is RemediationCategory.JAVA:
            if diagnosis.java_versions:
                requests.append(RemediationRequest(category, (list(diagnosis.java_versions),)))

        elif category is RemediationCategory.TIME_SYNC:
            if diagnosis.time_sync:
                requests.append(RemediationRequest(category))

        elif category is RemediationCategory.UNKNOWN:
            pass

        else:
            raise AssertionError(f"Unhandled remediation category: {category}")

        return requests

    def dispatch(self, request: RemediationRequest) -> bool:
        """Run one routine. Unknown or composite categories fail without touching the host."""
        routine = self.routines.get(request.category)
        if routine is None:
            logger.warning("No auto-fix routine defined for issue: %s", request.category.value)
            return False

        logger.info("Running %s remediation with %s", request.category.value, request.parameters)
        try:
            succeeded = bool(routine(*request.parameters))
        except (OSError, subprocess.SubprocessError) as e:
            logger.error("%s remediation raised %s: %s", request.category.value, type(e).__name__, e)
            return False

        logger.info("%s remediation %s", request.category.value, "succeeded" if succeeded else "failed")
        return succeeded
