from collections import deque
from collections.abc import Iterable

from impact_detector.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from impact_detector.analyzer.dependency_map.dependency_types import (
    ChangeImpactResult,
    DependencyGraph,
    ImpactMap,
    ImpactRecord,
)
from impact_detector.analyzer.dependency_map.test_classifier import TestClassifier
from impact_detector.schema.schema import Change, ChangeKind, ImpactedTest
from impact_detector.utils.file_util import FileUtil
from impact_detector.utils.log_util import log

# 依存先の伝播の起点になる変更(削除されたファイルに新たに依存するものはない)
SEED_KINDS = (ChangeKind.ADDED, ChangeKind.MODIFIED)


def propagate_records(
    changes: Iterable[Change], graph: DependencyGraph, repo_path: str = ""
) -> dict[str, ImpactRecord]:
    """
    変更されたファイルから逆依存グラフを幅優先でたどり、影響を受ける全ファイルを返す

    直接変更されたファイルは自身の変更種別を保持し、間接的に影響を受けたファイルは
    常に modified として記録する。グラフにないファイルは単に無視する。
    """
    records: dict[str, ImpactRecord] = {}

    # 直接の変更を先に全て記録する(後から間接的な modified で上書きしないため)
    for change in changes:
        abs_path = FileUtil.canonical_path(change.path, repo_path)
        records[abs_path] = ImpactRecord(path=abs_path, change_type=change.kind)

    queue = deque(path for path, record in records.items() if record.change_type in SEED_KINDS)
    already_queued = set(queue)

    while queue:
        current_file = queue.popleft()
        for dependent in sorted(graph.dependents(current_file)):
            if dependent in already_queued:
                continue
            already_queued.add(dependent)
            if dependent not in records:
                records[dependent] = ImpactRecord(path=dependent, change_type=ChangeKind.MODIFIED, via=current_file)
            queue.append(dependent)

    return records


def propagate(changes: Iterable[Change], graph: DependencyGraph, repo_path: str = "") -> ImpactMap:
    """影響を受けるファイル -> 変更種別"""
    return {path: record.change_type for path, record in propagate_records(changes, graph, repo_path).items()}


class ChangeImpactAnalyzer:
    def __init__(self, dependency_manager: DependencyManagerBase, classifier: TestClassifier | None = None):
        self.dm = dependency_manager
        self.classifier = classifier or TestClassifier()

    def find_impacted_tests(self, changes: list[Change]) -> list[ImpactedTest]:
        """変更の影響を受けるテストファイルを特定(グラフは構築済みであること)"""
        records = propagate_records(changes, self.dm.graph, self.dm.root)
        log("impacted files=%d (changed=%d)", len(records), len(changes))
        return self.classifier.classify(self.dm.root, records)

    def analyze_change(self, changed_file: str) -> ChangeImpactResult:
        """1ファイルの変更の影響範囲を分析"""
        affected_files = self.dm.find_affected_files(changed_file)
        tests_to_run = {
            FileUtil.to_relative_posix(path, self.dm.root)
            for path in affected_files
            if self.classifier.is_test(path, self.dm.root)
        }
        return ChangeImpactResult(affected_files=affected_files, tests_to_run=tests_to_run)
