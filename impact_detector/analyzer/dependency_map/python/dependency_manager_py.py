import ast
import os

from impact_detector import settings
from impact_detector.analyzer.dependency_map.ast_util import ast_parse
from impact_detector.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase


class DependencyManagerPy(DependencyManagerBase):
    extensions = settings.py_extensions

    def __init__(self, project_root: str, **kwargs):
        super().__init__(project_root, **kwargs)
        # 絶対importの探索起点(src/レイアウトにも対応)
        self.module_roots = [self.root]
        src_dir = os.path.join(self.root, "src")
        if os.path.isdir(src_dir):
            self.module_roots.append(src_dir)

    def _extract_imports(self, file_path: str) -> list[str]:
        """ASTからimport文を抽出(相対importは先頭の . で表現)"""
        tree = ast_parse(self._read_source(file_path), file_path)
        specifiers = []

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    specifiers.append(alias.name)

            elif isinstance(node, ast.ImportFrom):
                prefix = "." * node.level + (node.module or "")
                for alias in node.names:
                    if alias.name == "*":
                        specifiers.append(prefix)
                    elif node.module:
                        specifiers.append(f"{prefix}.{alias.name}")
                    else:
                        specifiers.append(prefix + alias.name)

        return list(dict.fromkeys(specifiers))

    def _resolve_import_path(self, specifier: str, current_file: str) -> str | None:
        """
        import文の文字列をファイルパスに解決する

        Args:
            specifier: 'package.module' 形式のimport文字列(相対importは '..module')
            current_file: 解析対象のPythonファイルのパス
        """
        name = specifier.lstrip(".")
        level = len(specifier) - len(name)
        parts = name.split(".") if name else []

        if level:
            base_dir = os.path.dirname(current_file)
            for _ in range(level - 1):
                base_dir = os.path.dirname(base_dir)
            bases = [base_dir]
        else:
            bases = self.module_roots

        for base in bases:
            resolved_path = self._find_module(base, parts)
            # from pkg import name の name がモジュールでない場合はpkg側に解決
            if resolved_path is None and (level or len(parts) > 1):
                resolved_path = self._find_module(base, parts[:-1])
            if resolved_path:
                return resolved_path
        return None

    def _find_module(self, base: str, parts: list[str]) -> str | None:
        module_path = os.path.join(base, *parts)
        candidates = [os.path.join(module_path, "__init__.py")]
        if parts:
            candidates.insert(0, module_path + ".py")
        for candidate in candidates:
            if candidate in self.source_files:
                return candidate
        return None
