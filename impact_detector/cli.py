import argparse
import os
import sys

import impact_detector
from impact_detector import settings
from impact_detector.analyzer.dependency_map.change_impact_analyzer import ChangeImpactAnalyzer
from impact_detector.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from impact_detector.analyzer.dependency_map.errors import ConfigurationFailure, ImpactDetectorError
from impact_detector.analyzer.dependency_map.python.dependency_manager_py import DependencyManagerPy
from impact_detector.analyzer.dependency_map.test_classifier import TestClassifier, TestFileMatcher
from impact_detector.analyzer.dependency_map.typescript.dependency_manager_ts import DependencyManagerTs
from impact_detector.schema.schema import Change, DetectorParams, ImpactReport, Language
from impact_detector.utils.file_util import FileUtil
from impact_detector.utils.log_util import log, log_e, log_inout_debug
from impact_detector.utils.rich_console import (
    console,
    display_changes,
    display_error,
    display_info_full,
    display_report,
    run_function_with_spinner,
)
from impact_detector.vcs.git_utils import GitChangeDetector

# tsconfig.json/package.jsonがあればTypeScript/JavaScriptのリポジトリとみなす
TS_PROJECT_MARKERS = ["tsconfig.json", "package.json"]


def main() -> None:
    """メイン処理(args前処理、パラメータ設定)"""
    log("========================================")
    log("||     impact-detector cli start      ||")
    log("========================================")
    parser = argparse.ArgumentParser(
        prog="impact-detector",
        description="Detects tests affected by a specific commit",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--repo", help="Path to the target repository", required=True)
    parser.add_argument("--commit", help="Commit SHA to analyze", default="")
    parser.add_argument("--base", help="Base branch/commit (analyze base...head instead of a commit)", default="")
    parser.add_argument("--head", help="Head branch/commit used with --base", default="HEAD")
    parser.add_argument(
        "--language",
        type=Language,
        choices=list(Language),
        help="Source language of the repository (auto: detect from tsconfig.json/package.json)",
        default=Language.AUTO,
    )
    parser.add_argument(
        "--test-suffix",
        help="Suffix right before the extension that marks a test file",
        default=settings.test_file_suffix,
    )
    parser.add_argument(
        "--test-pattern",
        help="Regex matched against the repository-relative path (overrides --test-suffix)",
        default=settings.test_file_pattern,
    )
    parser.add_argument(
        "--strict", action="store_true", help="Abort on the first unparseable file", default=settings.strict_parse
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--progress", action="store_true", help="Show progress while scanning files")
    parser.add_argument("-v", "--version", action="version", version=f"impact-detector {impact_detector.__version__}")
    args = parser.parse_args()

    if not args.commit and not args.base:
        parser.error("one of --commit or --base is required")

    params = DetectorParams(
        repo=args.repo,
        commit=args.commit,
        base=args.base,
        head=args.head,
        language=args.language,
        test_suffix=args.test_suffix,
        test_pattern=args.test_pattern,
        strict=args.strict,
        output_json=args.json,
        show_progress=args.progress,
    )
    if settings.is_debug:
        display_info_full(params, title="DetectorParams")

    try:
        report = main_exec(params)
    except ImpactDetectorError as e:
        log_e("impact-detector failed: %s", e)
        display_error(str(e))
        sys.exit(1)

    if params.output_json:
        print(report.model_dump_json(indent=2))
    else:
        display_report(report)


def main_exec(params: DetectorParams) -> ImpactReport:
    """メイン処理(変更取得 => 依存グラフ構築 => 影響伝播 => テスト抽出)"""
    repo_path = os.path.abspath(params.repo)
    if not os.path.isdir(repo_path):
        msg = f"Repository path does not exist: {repo_path}"
        raise ConfigurationFailure(msg)
    matcher = TestFileMatcher(suffix=params.test_suffix, pattern=params.test_pattern)

    quiet = params.output_json
    if not quiet:
        console.print(f"[blue]Analyzing {params.get_revision()} in {repo_path}...[/blue]", highlight=False)

    # 1. 変更されたファイルを取得
    changes = fetch_changes(params, repo_path)
    report = ImpactReport(repo_path=repo_path, revision=params.get_revision(), files_changed=len(changes))
    if not changes:
        if not quiet:
            console.print("[yellow]No changed files found for this revision.[/yellow]")
        return report
    if not quiet:
        display_changes(changes)

    # 2. 依存グラフを構築
    dependency_manager = create_dependency_manager(
        repo_path, params.language, strict=params.strict, show_progress=params.show_progress
    )
    if quiet or params.show_progress:
        dependency_manager.build()
    else:
        run_function_with_spinner("Building dependency graph...", dependency_manager.build)

    # 3. 影響を受けるテストを特定
    analyzer = ChangeImpactAnalyzer(dependency_manager, TestClassifier(matcher))
    report.impacted_tests = analyzer.find_impacted_tests(changes)
    report.files_scanned = dependency_manager.files_scanned
    report.parse_failures = [
        FileUtil.to_relative_posix(file_path, dependency_manager.root)
        for file_path in dependency_manager.parse_failures
    ]
    return report


def fetch_changes(params: DetectorParams, repo_path: str) -> list[Change]:
    detector = GitChangeDetector(repo_path)
    if params.commit:
        return detector.get_changed_files(params.commit)
    return detector.get_changed_files_between(params.base, params.head)


@log_inout_debug
def create_dependency_manager(repo_path: str, language: Language = Language.AUTO, **kwargs) -> DependencyManagerBase:
    if language == Language.AUTO:
        language = detect_language(repo_path)
    if language == Language.PY:
        return DependencyManagerPy(repo_path, **kwargs)
    return DependencyManagerTs(repo_path, **kwargs)


def detect_language(repo_path: str) -> Language:
    if any(os.path.isfile(os.path.join(repo_path, marker)) for marker in TS_PROJECT_MARKERS):
        return Language.TS
    return Language.PY


if __name__ == "__main__":
    main()
