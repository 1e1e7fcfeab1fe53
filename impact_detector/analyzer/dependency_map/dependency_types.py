from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypedDict

import networkx as nx

from impact_detector.schema.schema import ChangeKind


@dataclass(frozen=True)
class ImpactRecord:
    path: str
    change_type: ChangeKind
    via: str | None = None  # 間接的な影響の場合、どのファイル経由で到達したか


ImpactMap = dict[str, ChangeKind]


class ChangeImpactResult(TypedDict):
    affected_files: set[str]
    tests_to_run: set[str]


class DependencyGraph:
    """
    逆依存グラフ(ファイル -> そのファイルをimportしているファイルの集合)

    パスは整数IDにインターンし、networkx.DiGraphはIDだけを持つ。
    エッジ (A, B) は「BがAをimportしている」を意味する。
    """

    def __init__(self):
        self._paths: list[str] = []
        self._ids: dict[str, int] = {}
        self._graph = nx.DiGraph()

    def add_file(self, path: str) -> int:
        """ファイルをキーとして登録(登録済みならIDを返すだけ)"""
        file_id = self._ids.get(path)
        if file_id is None:
            file_id = len(self._paths)
            self._paths.append(path)
            self._ids[path] = file_id
            self._graph.add_node(file_id)
        return file_id

    def add_dependency(self, imported: str, importer: str) -> None:
        """importerがimportedをimportしていることを記録"""
        if imported == importer:
            return
        self._graph.add_edge(self.add_file(imported), self.add_file(importer))

    def dependents(self, path: str) -> set[str]:
        """pathを直接importしているファイル(未登録なら空集合)"""
        file_id = self._ids.get(path)
        if file_id is None:
            return set()
        return {self._paths[i] for i in self._graph.successors(file_id)}

    def descendants(self, path: str) -> set[str]:
        """pathに推移的に依存している全ファイル"""
        file_id = self._ids.get(path)
        if file_id is None:
            return set()
        return {self._paths[i] for i in nx.descendants(self._graph, file_id)}

    def files(self) -> list[str]:
        return list(self._paths)

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def to_dict(self) -> dict[str, list[str]]:
        return {path: sorted(self.dependents(path)) for path in self._paths}

    @classmethod
    def from_dict(cls, data: dict[str, list[str] | set[str]]) -> DependencyGraph:
        graph = cls()
        for path, dependents in data.items():
            graph.add_file(path)
            for dependent in sorted(dependents):
                graph.add_dependency(path, dependent)
        return graph

    def __contains__(self, path: object) -> bool:
        return path in self._ids

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __repr__(self) -> str:
        return f"DependencyGraph(files={len(self)}, edges={self.edge_count})"
