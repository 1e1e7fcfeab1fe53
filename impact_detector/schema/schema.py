from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from impact_detector import settings


class ChangeKind(str, Enum):
    ADDED = "added"  # 新規追加
    MODIFIED = "modified"  # 変更(間接的な影響も含む)
    DELETED = "deleted"  # 削除

    def __str__(self):
        return self.value

    def __repr__(self) -> str:
        return self.value


class Language(str, Enum):
    AUTO = "auto"  # tsconfig.json/package.jsonの有無で判定
    TS = "ts"  # TypeScript/JavaScript
    PY = "py"  # Python

    def __str__(self):
        return self.value


class Change(BaseModel):
    path: str = Field(description="変更されたファイル(リポジトリ相対パス)")
    kind: ChangeKind = Field(default=ChangeKind.MODIFIED, description="変更の種類")


class ImpactedTest(BaseModel):
    test_name: str = Field(description="影響を受けるテストファイル(リポジトリ相対、/区切り)")
    change_type: ChangeKind = Field(description="変更の種類")
    reason: str = Field(default="", description="影響を受けた理由")


class ImpactReport(BaseModel):
    repo_path: str = Field(description="解析対象のリポジトリ(絶対パス)")
    revision: str = Field(default="", description="解析したコミットまたは範囲")
    files_scanned: int = Field(default=0, description="依存グラフに含まれるファイル数")
    files_changed: int = Field(default=0, description="変更されたファイル数")
    impacted_tests: list[ImpactedTest] = Field(default_factory=list, description="影響を受けるテスト")
    parse_failures: list[str] = Field(default_factory=list, description="解析をスキップしたファイル")


class DetectorParams(BaseModel):
    repo: str = Field(default=".", description="解析対象のリポジトリのパス")
    commit: str = Field(default="", description="解析対象のコミットSHA")
    base: str = Field(default="", description="比較元のブランチ/コミット")
    head: str = Field(default="HEAD", description="比較先のブランチ/コミット")
    language: Language = Field(default=Language.AUTO, description="解析対象の言語")
    test_suffix: str = Field(default=settings.test_file_suffix, description="テストファイルの接尾辞(拡張子の直前)")
    test_pattern: str = Field(default=settings.test_file_pattern, description="テストファイルの正規表現")
    strict: bool = Field(default=settings.strict_parse, description="構文エラーで中断するか")
    output_json: bool = Field(default=False, description="JSONで出力するか")
    show_progress: bool = Field(default=False, description="スキャンの進捗を表示するか")

    def get_revision(self) -> str:
        if self.commit:
            return self.commit
        return f"{self.base}...{self.head}"
