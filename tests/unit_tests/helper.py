import os
import tempfile
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from impact_detector.analyzer.dependency_map.dependency_types import DependencyGraph
from impact_detector.utils.file_util import FileUtil


class MockManager:
    """複数のモックをmock_nameという名前でアクセスできるようにするクラス"""

    def __init__(self):
        self.mock_dict: dict[str, MagicMock] = {}

    def _set_mock(self, mock_name: str, mock_target: str, return_value: Any = ""):
        # モックを生成してreturn_valueを設定
        self.mock_dict[mock_name] = self._parameterized_mock_factory(mock_target, return_value)

    def _parameterized_mock_factory(self, mock_target: str, return_value: Any):
        instance = MagicMock()
        instance.return_value = return_value
        patcher = patch(mock_target, instance)
        return patcher.start()

    def _get_mock(self, mock_name: str) -> None | MagicMock:
        if mock_name in self.mock_dict:
            return self.mock_dict[mock_name]
        return None

    def get_mock(self, mock_name: str) -> MagicMock:
        return self.mock_dict[mock_name]

    def get_mock_call_count(self, mock_name: str):
        # モック呼び出しの回数を取得
        return self._get_mock(mock_name).call_count

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = "") -> None:
        # モックをmock_dictから取り出すときの名前
        mock_name = mock_alias if mock_alias else mock_target
        if not mock_name:
            return

        mock = self._get_mock(mock_name)
        if mock:
            # 既存のモックに値だけ設定
            mock.return_value = return_value
        else:
            self._set_mock(mock_name, mock_target, return_value)

    def set_mock_side_effect(
        self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None
    ) -> None:
        # サイドエフェクトを持つモックを設定
        mock_name = mock_alias if mock_alias else mock_target
        if mock_name and mock_name not in self.mock_dict:
            self._set_mock(mock_name, mock_target, 0)
        self.mock_dict[mock_name].side_effect = side_effect


class BaseTestCase(unittest.TestCase):
    def setUp(self):
        self.mock_manager = MockManager()
        # テスト用のリポジトリ(一時ディレクトリ)
        self._temp_dir = tempfile.TemporaryDirectory()
        self.repo_path = FileUtil.canonical_path(self._temp_dir.name)

    def tearDown(self):
        # モックを停止
        patch.stopall()
        self._temp_dir.cleanup()

    def write_file(self, rel_path: str, content: str = "") -> str:
        """リポジトリ内にファイルを作成して正規化済みの絶対パスを返す"""
        file_path = os.path.join(self.repo_path, rel_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)
        return FileUtil.canonical_path(file_path)

    def abs_path(self, rel_path: str) -> str:
        return FileUtil.canonical_path(rel_path, self.repo_path)

    def make_graph(self, edges: dict[str, list[str]]) -> DependencyGraph:
        """{'util.ts': ['service.ts']} 形式(相対パス)から逆依存グラフを作成"""
        return DependencyGraph.from_dict(
            {self.abs_path(path): [self.abs_path(dep) for dep in deps] for path, deps in edges.items()}
        )

    def check_mock_call_count(self, mock_name: str, expected_count: int):
        self.assertEqual(self.mock_manager.get_mock_call_count(mock_name), expected_count, mock_name)

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = ""):
        self.mock_manager.set_mock_return_value(
            mock_target=mock_target, mock_alias=mock_alias, return_value=return_value
        )

    def set_mock_side_effect(self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None):
        self.mock_manager.set_mock_side_effect(mock_target=mock_target, mock_alias=mock_alias, side_effect=side_effect)
