import os
from pathlib import Path

from impact_detector.utils.log_util import log


class FileUtil:
    @staticmethod
    def read_file(file_path: str) -> str:
        if os.path.isfile(file_path):
            with open(file_path, encoding="utf-8") as file:
                return file.read()
        return ""

    @staticmethod
    def read_source(file_path: str) -> str:
        """ソースファイルを読み込む(UnicodeDecodeErrorは呼び出し元で扱う)"""
        with open(file_path, encoding="utf-8") as file:
            return file.read()

    @staticmethod
    def canonical_path(file_path: str, base_dir: str = "") -> str:
        """グラフのキーと同じ正規化された絶対パスを返す(存在しないファイルも可)"""
        path = Path(base_dir, file_path) if base_dir else Path(file_path)
        return str(path.resolve())

    @staticmethod
    def to_relative_posix(file_path: str, base_dir: str) -> str:
        """base_dirからの相対パスを/区切りで返す"""
        rel_path = os.path.relpath(file_path, base_dir)
        return rel_path.replace("\\", "/")

    @staticmethod
    def find_files(root_path: str, extensions: list[str], ignore_dirs: list[str]) -> list[str]:
        """Find source files in the root_path

        Args:
            root_path (str): root path to find files
            extensions (list[str]): file extensions to collect (e.g. [".ts", ".tsx"])
            ignore_dirs (list[str]): directory names to skip (e.g. ["node_modules"])

        Returns:
            list[str]: sorted list of canonical file paths
        """
        file_paths = []
        if not os.path.isdir(root_path):
            return file_paths

        for current_dir, dirs, files in os.walk(root_path):
            # 依存パッケージなどのディレクトリは降りない
            dirs[:] = sorted(d for d in dirs if d not in ignore_dirs)
            for file_name in files:
                if file_name.endswith(tuple(extensions)):
                    file_paths.append(str(Path(current_dir, file_name).resolve()))

        file_paths.sort()
        log("find_files root=%s found=%d", root_path, len(file_paths))
        return file_paths
