from dataclasses import dataclass


class ImpactDetectorError(Exception):
    """impact_detector全体の例外の基底クラス"""


class ConfigurationFailure(ImpactDetectorError):
    """リポジトリが存在しない、またはソースファイルが見つからない(致命的)"""


class VcsFailure(ImpactDetectorError):
    """gitコマンドの実行に失敗した"""


class ParseFailure(ImpactDetectorError):
    """ソースファイルの構文を解析できなかった"""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"{file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


@dataclass(frozen=True)
class UnresolvedImport:
    """ツリー内のファイルに解決できなかったimport(エラーではなく記録のみ)"""

    importer: str
    specifier: str
