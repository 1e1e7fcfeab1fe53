import os

from impact_detector import settings
from impact_detector.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from impact_detector.analyzer.dependency_map.es_util import extract_module_specifiers, load_jsonc
from impact_detector.utils.file_util import FileUtil
from impact_detector.utils.log_util import log, log_w

# .js で書かれたimportがTypeScriptのソースを指す場合(ESMの慣習)
JS_TO_TS_EXTENSIONS = {
    ".js": [".ts", ".tsx"],
    ".jsx": [".tsx"],
    ".mjs": [".mts"],
    ".cjs": [".cts"],
}
# JSXテキストを含みうる拡張子
JSX_EXTENSIONS = (".tsx", ".jsx")


class DependencyManagerTs(DependencyManagerBase):
    extensions = settings.ts_extensions

    def __init__(self, project_root: str, **kwargs):
        super().__init__(project_root, **kwargs)
        self.base_url: str | None = None
        self.paths: dict[str, list[str]] = {}
        self._load_tsconfig()

    def _load_tsconfig(self) -> None:
        """tsconfig.jsonのbaseUrl/pathsを読み込む(読めなければエイリアスなしで続行)"""
        tsconfig_path = os.path.join(self.root, "tsconfig.json")
        if not os.path.isfile(tsconfig_path):
            return
        try:
            tsconfig = load_jsonc(FileUtil.read_file(tsconfig_path))
        except ValueError as e:
            log_w("ignore unreadable tsconfig.json: %s", e)
            return

        compiler_options = tsconfig.get("compilerOptions") or {}
        base_url = compiler_options.get("baseUrl")
        if base_url is not None:
            self.base_url = os.path.normpath(os.path.join(self.root, base_url))
        self.paths = compiler_options.get("paths") or {}
        log("tsconfig baseUrl=%s paths=%s", self.base_url, self.paths)

    def _extract_imports(self, file_path: str) -> list[str]:
        content = self._read_source(file_path)
        return extract_module_specifiers(content, file_path, lenient=file_path.endswith(JSX_EXTENSIONS))

    def _resolve_import_path(self, specifier: str, current_file: str) -> str | None:
        if specifier.startswith("."):
            return self._resolve_candidates(os.path.join(os.path.dirname(current_file), specifier))
        if os.path.isabs(specifier):
            return self._resolve_candidates(specifier)

        for base in self._alias_candidates(specifier):
            resolved_path = self._resolve_candidates(base)
            if resolved_path:
                return resolved_path
        # パッケージ(node_modules)など
        return None

    def _alias_candidates(self, specifier: str) -> list[str]:
        """tsconfigのpaths/baseUrlから候補となるパスを列挙"""
        candidates = []
        paths_base = self.base_url or self.root

        # 固定部分が長いパターンを優先
        for pattern in sorted(self.paths, key=lambda p: len(p.replace("*", "")), reverse=True):
            targets = self.paths[pattern]
            if "*" in pattern:
                prefix, _, suffix = pattern.partition("*")
                if (
                    len(specifier) >= len(prefix) + len(suffix)
                    and specifier.startswith(prefix)
                    and specifier.endswith(suffix)
                ):
                    matched = specifier[len(prefix) : len(specifier) - len(suffix)]
                    candidates.extend(os.path.join(paths_base, t.replace("*", matched, 1)) for t in targets)
            elif specifier == pattern:
                candidates.extend(os.path.join(paths_base, t) for t in targets)

        if self.base_url:
            candidates.append(os.path.join(self.base_url, specifier))
        return candidates

    def _resolve_candidates(self, base: str) -> str | None:
        """拡張子の補完とindexファイルを考慮して、スキャン済みのファイルに解決する"""
        base = os.path.normpath(base)
        stem, ext = os.path.splitext(base)

        candidates = [base]
        candidates.extend(stem + ts_ext for ts_ext in JS_TO_TS_EXTENSIONS.get(ext, []))
        candidates.extend(base + source_ext for source_ext in [*self.extensions, ".d.ts"])
        candidates.extend(os.path.join(base, "index" + source_ext) for source_ext in self.extensions)

        for candidate in candidates:
            if candidate in self.source_files:
                return candidate
        return None
