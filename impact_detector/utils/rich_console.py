from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from impact_detector.schema.schema import Change, ChangeKind, ImpactReport

# 通常のConsoleオブジェクト
console = Console(width=120)
# エラー表示用のConsoleオブジェクト
error_console = Console(width=120, stderr=True)

CHANGE_KIND_STYLE = {
    ChangeKind.ADDED: "green",
    ChangeKind.MODIFIED: "yellow",
    ChangeKind.DELETED: "red",
}


def run_function_with_spinner(description: str, func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    指定された関数を実行し、その間スピナーを表示します。

    :param description: スピナーに表示する説明
    :param func: 実行する関数
    :param args: 関数に渡す位置引数
    :param kwargs: 関数に渡すキーワード引数
    :return: 関数の戻り値
    """
    with console.status(f"[bold green]{description}"):
        return func(*args, **kwargs)


def prepare_table_common(title: str, title_style: str = "bold") -> Table:
    table = Table(title=title, title_style=title_style)

    # ローカルマシンに設定されているタイムゾーンを取得
    local_tz = datetime.now().astimezone().tzinfo
    table.caption = f"取得日時: {datetime.now(tz=local_tz).strftime('%Y-%m-%d %H:%M:%S')}"
    table.caption_justify = "left"
    return table


def display_info_full(any_info: BaseModel, title: str = "詳細", table_title: str = ""):
    """
    pydanticモデルの情報を整形して表示します。
    """
    table = prepare_table_common(table_title)
    table.add_column("項目", style="cyan", no_wrap=True)
    table.add_column("値")

    for key, value in any_info.model_dump().items():
        table.add_row(key, str(value))

    console.print(Panel(table, title=title, border_style="white"))


def display_changes(changes: list[Change]):
    """
    gitから取得した変更の一覧を表示します。
    """
    console.print(f"[dim]Found {len(changes)} changed files.[/dim]")
    for change in changes:
        console.print(f"[grey50] - {escape(f'[{change.kind.value}]')} {escape(change.path)}[/grey50]", highlight=False)


def display_report(report: ImpactReport):
    """
    影響を受けるテストの一覧を表示します。
    """
    console.print(
        f"[dim]Graph built with {report.files_scanned} files, {report.files_changed} files changed.[/dim]"
    )
    for file_path in report.parse_failures:
        console.print(f"[yellow]Skipped unparseable file: {escape(file_path)}[/yellow]", highlight=False)

    if not report.impacted_tests:
        console.print(Panel("No tests impacted.", style="green"))
        return

    table = prepare_table_common(f"Impacted Tests ({report.revision})")
    table.add_column("変更", no_wrap=True)
    table.add_column("テスト", style="bold")
    table.add_column("理由", style="dim")
    for test in report.impacted_tests:
        style = CHANGE_KIND_STYLE.get(test.change_type, "white")
        table.add_row(
            f"[{style}]{test.change_type.value.upper()}[/{style}]",
            escape(test.test_name),
            escape(test.reason),
        )

    console.print(Panel(table, title="影響を受けるテスト", border_style="green"))


def display_error(message: str):
    error_console.print(Panel(escape(message), title="Error", style="red"))
