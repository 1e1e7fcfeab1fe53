import unittest

from impact_detector.analyzer.dependency_map.change_impact_analyzer import (
    ChangeImpactAnalyzer,
    propagate,
    propagate_records,
)
from impact_detector.analyzer.dependency_map.test_classifier import classify
from impact_detector.analyzer.dependency_map.typescript.dependency_manager_ts import DependencyManagerTs
from impact_detector.schema.schema import Change, ChangeKind, ImpactedTest
from tests.unit_tests.helper import BaseTestCase


class TestPropagate(BaseTestCase):
    def setUp(self):
        super().setUp()
        # util.ts <- service.ts <- service.spec.ts
        #         <- helper.ts
        self.graph = self.make_graph(
            {
                "util.ts": ["service.ts", "helper.ts"],
                "service.ts": ["service.spec.ts"],
                "helper.ts": [],
                "service.spec.ts": [],
                "orphan.ts": [],
                "unrelated.spec.ts": [],
            }
        )

    def test_changed_file_keeps_its_kind(self):
        result = propagate([Change(path="util.ts", kind=ChangeKind.ADDED)], self.graph, self.repo_path)
        self.assertEqual(result[self.abs_path("util.ts")], ChangeKind.ADDED)

    def test_transitive_dependents_are_modified(self):
        result = propagate([Change(path="util.ts", kind=ChangeKind.ADDED)], self.graph, self.repo_path)
        self.assertEqual(
            result,
            {
                self.abs_path("util.ts"): ChangeKind.ADDED,
                self.abs_path("helper.ts"): ChangeKind.MODIFIED,
                self.abs_path("service.ts"): ChangeKind.MODIFIED,
                self.abs_path("service.spec.ts"): ChangeKind.MODIFIED,
            },
        )

    def test_unreachable_files_are_not_included(self):
        result = propagate([Change(path="service.ts", kind=ChangeKind.MODIFIED)], self.graph, self.repo_path)
        self.assertEqual(set(result), {self.abs_path("service.ts"), self.abs_path("service.spec.ts")})

    def test_deleted_file_seeds_nothing(self):
        result = propagate([Change(path="util.ts", kind=ChangeKind.DELETED)], self.graph, self.repo_path)
        self.assertEqual(result, {self.abs_path("util.ts"): ChangeKind.DELETED})

    def test_direct_kind_wins_over_transitive_modified(self):
        changes = [
            Change(path="util.ts", kind=ChangeKind.MODIFIED),
            Change(path="service.spec.ts", kind=ChangeKind.ADDED),
        ]
        result = propagate(changes, self.graph, self.repo_path)
        self.assertEqual(result[self.abs_path("service.spec.ts")], ChangeKind.ADDED)

    def test_deleted_dependent_keeps_deleted(self):
        changes = [
            Change(path="util.ts", kind=ChangeKind.MODIFIED),
            Change(path="service.ts", kind=ChangeKind.DELETED),
        ]
        result = propagate(changes, self.graph, self.repo_path)
        self.assertEqual(result[self.abs_path("service.ts")], ChangeKind.DELETED)
        # 削除されたファイル経由でも依存元には到達する(グラフは変更前の状態を持たないため)
        self.assertEqual(result[self.abs_path("service.spec.ts")], ChangeKind.MODIFIED)

    def test_file_missing_from_graph_is_ignored(self):
        result = propagate([Change(path="missing.ts", kind=ChangeKind.MODIFIED)], self.graph, self.repo_path)
        self.assertEqual(result, {self.abs_path("missing.ts"): ChangeKind.MODIFIED})

    def test_cycle_terminates(self):
        graph = self.make_graph({"a.ts": ["b.ts"], "b.ts": ["a.ts"]})
        result = propagate([Change(path="a.ts", kind=ChangeKind.MODIFIED)], graph, self.repo_path)
        self.assertEqual(list(result), [self.abs_path("a.ts"), self.abs_path("b.ts")])
        self.assertEqual(result[self.abs_path("b.ts")], ChangeKind.MODIFIED)

    def test_long_cycle_terminates(self):
        graph = self.make_graph({"a.ts": ["b.ts"], "b.ts": ["c.ts"], "c.ts": ["d.ts"], "d.ts": ["a.ts"]})
        result = propagate([Change(path="c.ts", kind=ChangeKind.ADDED)], graph, self.repo_path)
        self.assertEqual(len(result), 4)
        self.assertEqual(result[self.abs_path("c.ts")], ChangeKind.ADDED)

    def test_records_keep_via(self):
        records = propagate_records([Change(path="util.ts", kind=ChangeKind.MODIFIED)], self.graph, self.repo_path)
        self.assertIsNone(records[self.abs_path("util.ts")].via)
        self.assertEqual(records[self.abs_path("service.spec.ts")].via, self.abs_path("service.ts"))

    def test_result_is_deterministic(self):
        changes = [Change(path="util.ts", kind=ChangeKind.MODIFIED)]
        first = list(propagate(changes, self.graph, self.repo_path).items())
        second = list(propagate(changes, self.graph, self.repo_path).items())
        self.assertEqual(first, second)


class TestImpactedTestScenarios(BaseTestCase):
    def test_dependency_chain_reaches_spec(self):
        graph = self.make_graph({"util.ts": ["service.ts"], "service.ts": ["service.spec.ts"]})
        impact_map = propagate([Change(path="util.ts", kind=ChangeKind.MODIFIED)], graph, self.repo_path)
        self.assertEqual(
            classify(self.repo_path, impact_map),
            [ImpactedTest(test_name="service.spec.ts", change_type=ChangeKind.MODIFIED)],
        )

    def test_added_orphan_impacts_no_tests(self):
        graph = self.make_graph({"orphan.ts": [], "service.spec.ts": []})
        impact_map = propagate([Change(path="orphan.ts", kind=ChangeKind.ADDED)], graph, self.repo_path)
        self.assertEqual(classify(self.repo_path, impact_map), [])


class TestChangeImpactAnalyzer(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.write_file("src/util.ts", "export const u = 1;\n")
        self.write_file("src/service.ts", "import { u } from './util';\nexport const s = u;\n")
        self.write_file("src/service.spec.ts", "import { s } from './service';\n")
        self.write_file("src/orphan.ts", "export {};\n")
        self.dm = DependencyManagerTs(self.repo_path)
        self.dm.build()
        self.analyzer = ChangeImpactAnalyzer(self.dm)

    def test_analyze_change(self):
        result = self.analyzer.analyze_change("src/util.ts")
        self.assertEqual(
            result["affected_files"], {self.abs_path("src/service.ts"), self.abs_path("src/service.spec.ts")}
        )
        self.assertEqual(result["tests_to_run"], {"src/service.spec.ts"})

    def test_find_impacted_tests(self):
        impacted_tests = self.analyzer.find_impacted_tests([Change(path="src/util.ts", kind=ChangeKind.MODIFIED)])
        self.assertEqual(
            impacted_tests,
            [
                ImpactedTest(
                    test_name="src/service.spec.ts",
                    change_type=ChangeKind.MODIFIED,
                    reason="Depends on src/service.ts",
                )
            ],
        )
        self.assertEqual(self.analyzer.find_impacted_tests([Change(path="src/orphan.ts", kind=ChangeKind.ADDED)]), [])


if __name__ == "__main__":
    unittest.main()
