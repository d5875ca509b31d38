import subprocess

from core.dispatcher import RemediationDispatcher, default_routines
from core.models import Diagnosis, RemediationCategory, RemediationRequest


def test_every_simple_category_has_a_routine():
    routines = default_routines()
    for category in RemediationCategory:
        if category in (RemediationCategory.SOFTWARE, RemediationCategory.UNKNOWN):
            assert category not in routines
        else:
            assert callable(routines[category])


class TestPlan:

    def test_locale_plan_carries_locale(self):
        plan = RemediationDispatcher({}).plan(RemediationCategory.LOCALE, Diagnosis(locale="en_US.utf8"))
        assert plan == [RemediationRequest(RemediationCategory.LOCALE, ("en_US.utf8",))]

    def test_ulimits_then_time_sync(self):
        diagnosis = Diagnosis(ulimits=(65536, 4096), time_sync=True)
        plan = RemediationDispatcher({}).plan(RemediationCategory.ULIMITS, diagnosis)
        assert plan == [
            RemediationRequest(RemediationCategory.ULIMITS, (65536, 4096)),
            RemediationRequest(RemediationCategory.TIME_SYNC),
        ]

    def test_time_sync_only(self):
        plan = RemediationDispatcher({}).plan(RemediationCategory.ULIMITS, Diagnosis(time_sync=True))
        assert [r.category for r in plan] == [RemediationCategory.TIME_SYNC]

    def test_software_order_is_fixed(self):
        diagnosis = Diagnosis(java_versions=("OpenJDK 11",), missing_repos=("EPEL",), missing_packages=("zip", "acl"))
        plan = RemediationDispatcher({}).plan(RemediationCategory.SOFTWARE, diagnosis)
        assert [r.category for r in plan] == [
            RemediationCategory.PACKAGES,
            RemediationCategory.REPOSITORIES,
            RemediationCategory.JAVA,
        ]
        assert plan[0].parameters == (["zip", "acl"],)

    def test_software_only_includes_detected_issues(self):
        plan = RemediationDispatcher({}).plan(RemediationCategory.SOFTWARE, Diagnosis(missing_repos=("EPEL",)))
        assert [r.category for r in plan] == [RemediationCategory.REPOSITORIES]

    def test_empty_diagnosis_means_empty_plan(self):
        dispatcher = RemediationDispatcher({})
        for category in RemediationCategory:
            assert dispatcher.plan(category, Diagnosis()) == []

    def test_unknown_never_plans(self):
        diagnosis = Diagnosis(locale="C", ulimits=(1, 1), time_sync=True, missing_packages=("git",))
        assert RemediationDispatcher({}).plan(RemediationCategory.UNKNOWN, diagnosis) == []


class TestDispatch:

    def test_unknown_category_returns_false(self):
        called = []
        dispatcher = RemediationDispatcher({RemediationCategory.LOCALE: lambda *a: called.append(a) or True})
        assert dispatcher.dispatch(RemediationRequest(RemediationCategory.UNKNOWN)) is False
        assert called == []

    def test_routine_parameters_are_unpacked(self):
        seen = []
        dispatcher = RemediationDispatcher({RemediationCategory.ULIMITS: lambda f, p: seen.append((f, p)) or True})
        assert dispatcher.dispatch(RemediationRequest(RemediationCategory.ULIMITS, (10, 20))) is True
        assert seen == [(10, 20)]

    def test_routine_os_error_counts_as_failure(self):
        def broken():
            raise subprocess.TimeoutExpired(["dnf"], 5)

        dispatcher = RemediationDispatcher({RemediationCategory.TIME_SYNC: broken})
        assert dispatcher.dispatch(RemediationRequest(RemediationCategory.TIME_SYNC)) is False

    def test_falsy_routine_result_is_failure(self):
        dispatcher = RemediationDispatcher({RemediationCategory.TIME_SYNC: lambda: None})
        assert dispatcher.dispatch(RemediationRequest(RemediationCategory.TIME_SYNC)) is False
