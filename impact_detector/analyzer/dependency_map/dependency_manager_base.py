import os

from tqdm import tqdm

from impact_detector import settings
from impact_detector.analyzer.dependency_map.dependency_types import DependencyGraph
from impact_detector.analyzer.dependency_map.errors import ConfigurationFailure, ParseFailure, UnresolvedImport
from impact_detector.utils.file_util import FileUtil
from impact_detector.utils.log_util import log, log_d, log_progress, log_w


class DependencyManagerBase:
    """
    リポジトリをスキャンして逆依存グラフを構築する

    言語ごとのサブクラスが _extract_imports() を実装する。
    """

    extensions: list[str] = []

    def __init__(
        self,
        project_root: str,
        *,
        strict: bool = settings.strict_parse,
        ignore_dirs: list[str] | None = None,
        show_progress: bool = False,
    ):
        self.root = FileUtil.canonical_path(project_root)
        self.strict = strict
        self.ignore_dirs = ignore_dirs if ignore_dirs is not None else settings.ignore_dirs
        self.show_progress = show_progress
        self.graph = DependencyGraph()
        self.source_files: set[str] = set()
        self.unresolved: list[UnresolvedImport] = []
        self.parse_failures: list[str] = []

    @property
    def files_scanned(self) -> int:
        return len(self.source_files)

    def build(self) -> DependencyGraph:
        """プロジェクト全体をスキャンして逆依存グラフを構築"""
        if not os.path.isdir(self.root):
            msg = f"Repository path does not exist or is not a directory: {self.root}"
            raise ConfigurationFailure(msg)

        files = self.scan_project()
        if not files:
            msg = f"No source files ({', '.join(self.extensions)}) found under {self.root}"
            raise ConfigurationFailure(msg)

        # 全ファイルを先にキーとして登録(依存されていないファイルもキーになる)
        self.source_files = set(files)
        for file_path in files:
            self.graph.add_file(file_path)

        with tqdm(files, desc="scan", unit="file", disable=not self.show_progress) as t:
            for file_path in t:
                self._analyze_file(file_path)
                log_progress(t)

        if len(self.parse_failures) == len(files):
            msg = f"No parseable source files under {self.root}"
            raise ConfigurationFailure(msg)

        log(
            "graph built: files=%d edges=%d unresolved=%d parse_failures=%d",
            len(self.graph),
            self.graph.edge_count,
            len(self.unresolved),
            len(self.parse_failures),
        )
        return self.graph

    def scan_project(self) -> list[str]:
        """解析対象のソースファイルを列挙"""
        return FileUtil.find_files(self.root, self.extensions, self.ignore_dirs)

    def find_affected_files(self, changed_file: str) -> set[str]:
        """変更されたファイルに影響を受けるファイルを特定"""
        return self.graph.descendants(FileUtil.canonical_path(changed_file, self.root))

    def _analyze_file(self, file_path: str) -> None:
        """個別ファイルの解析(構文エラーの扱いはstrictで切り替え)"""
        try:
            specifiers = self._extract_imports(file_path)
        except ParseFailure as e:
            if self.strict:
                raise
            log_w("skip unparseable file: %s", e)
            self.parse_failures.append(file_path)
            return

        for specifier in specifiers:
            resolved_path = self._resolve_import_path(specifier, file_path)
            if resolved_path is None:
                log_d("unresolved import %s in %s", specifier, file_path)
                self.unresolved.append(UnresolvedImport(importer=file_path, specifier=specifier))
                continue
            self.graph.add_dependency(resolved_path, file_path)

    def _read_source(self, file_path: str) -> str:
        try:
            return FileUtil.read_source(file_path)
        except UnicodeDecodeError as e:
            raise ParseFailure(file_path, f"cannot decode as utf-8: {e.reason}") from e

    def _extract_imports(self, file_path: str) -> list[str]:
        """ファイルからimport/exportの参照先(モジュール指定子)を抽出"""
        raise NotImplementedError

    def _resolve_import_path(self, specifier: str, current_file: str) -> str | None:
        """モジュール指定子をツリー内のファイルパスに解決する(解決できなければNone)"""
        raise NotImplementedError
