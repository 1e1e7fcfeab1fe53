import os
from os.path import dirname, join

from dotenv import load_dotenv

load_dotenv(verbose=True)

dotenv_path = join(dirname(__file__), ".env")
load_dotenv(dotenv_path)


def _get_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "t")


def _get_list(name: str, default: str) -> list[str]:
    value = os.getenv(name, default)
    return [item.strip() for item in value.split(",") if item.strip()]


# mode
is_debug = _get_bool("IS_DEBUG")  # デバッグモード(例: IS_DEBUG=True)

# test file convention
test_file_suffix = os.getenv("TEST_FILE_SUFFIX", ".spec")  # service.spec.ts => テスト
test_file_pattern = os.getenv("TEST_FILE_PATTERN", "")  # 指定時はsuffixより優先(正規表現)

# graph builder
strict_parse = _get_bool("STRICT_PARSE")  # Trueなら構文エラーで中断、Falseなら警告してスキップ
ignore_dirs = _get_list("IGNORE_DIRS", "node_modules,.git,.venv,venv,__pycache__,site-packages")
ts_extensions = _get_list("TS_EXTENSIONS", ".ts,.tsx,.js,.jsx,.mjs,.cjs")
py_extensions = _get_list("PY_EXTENSIONS", ".py")

# vcs
git_binary = os.getenv("GIT_BINARY", "git")

# log
log_file = os.getenv("LOG_FILE", "impact_detector.log")  # 空文字ならファイル出力しない
