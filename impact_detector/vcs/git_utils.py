from impact_detector import settings
from impact_detector.analyzer.dependency_map.errors import VcsFailure
from impact_detector.schema.schema import Change, ChangeKind
from impact_detector.utils.log_util import log
from impact_detector.utils.subprocess_util import SubprocessUtil


class GitChangeDetector:
    """gitの差分から変更されたファイルを取得する"""

    def __init__(self, repo_path: str = ".", git_binary: str = settings.git_binary):
        self.repo_path = repo_path
        self.git_binary = git_binary

    def get_changed_files(self, sha: str) -> list[Change]:
        """コミット単体で変更されたファイル(--rootで最初のコミットも対象)"""
        output = self._run_git(["diff-tree", "--root", "--no-commit-id", "--name-status", "-z", "-r", sha])
        return self.parse_name_status(output)

    def get_changed_files_between(self, base_ref: str, head_ref: str = "HEAD") -> list[Change]:
        """base_refから分岐してhead_refまでに変更されたファイル"""
        output = self._run_git(["diff", "--name-status", "-z", f"{base_ref}...{head_ref}"])
        return self.parse_name_status(output)

    def _run_git(self, args: list[str]) -> str:
        command = [self.git_binary, *args]
        log("git command=%s", command)
        try:
            result = SubprocessUtil.run(command, cwd=self.repo_path, capture_output=True, check=True)
        except SubprocessUtil.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            msg = f"git {' '.join(args)} failed (exit {e.returncode}): {stderr}"
            raise VcsFailure(msg) from e
        except OSError as e:
            msg = f"cannot run git ({self.git_binary}): {e}"
            raise VcsFailure(msg) from e
        return result.stdout

    @staticmethod
    def parse_name_status(output: str) -> list[Change]:
        """
        --name-status -z の出力を変更のリストに変換する

        -z ではパスはクォートされず、各フィールドがNULで区切られる。
        A: 追加, D: 削除, M/T: 変更,
        R100<NUL>old<NUL>new: 新しいパスの変更, C<NUL>src<NUL>new: 新しいパスの追加
        """
        fields = output.split("\0")
        changes = []
        i = 0
        while i < len(fields):
            status = fields[i].strip()
            i += 1
            if not status or i >= len(fields):
                continue
            file_path = fields[i]
            i += 1

            kind = ChangeKind.MODIFIED
            if status.startswith("A"):
                kind = ChangeKind.ADDED
            elif status.startswith("D"):
                kind = ChangeKind.DELETED
            elif status.startswith(("R", "C")) and i < len(fields):
                # リネーム/コピーは新しいパスだけを扱う
                file_path = fields[i]
                i += 1
                if status.startswith("C"):
                    kind = ChangeKind.ADDED

            changes.append(Change(path=file_path, kind=kind))
        return changes
