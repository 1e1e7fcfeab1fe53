import json
import re

from impact_detector.analyzer.dependency_map.errors import ParseFailure

# 正規表現リテラルを開始できる直前の記号(それ以外の直後の / は除算)
REGEX_PRECEDING_CHARS = set("(,=:[!&|?{};+-*%<>~^")
REGEX_PRECEDING_KEYWORDS = {
    "return",
    "typeof",
    "case",
    "do",
    "else",
    "in",
    "instanceof",
    "new",
    "void",
    "delete",
    "throw",
    "yield",
    "await",
}
_WORD_BEFORE_RE = re.compile(r"([\w$]+)\s*$")
# 後置の ++/-- は式の終わりなので、直後の / は除算
_INCREMENT_BEFORE_RE = re.compile(r"(?:\+\+|--)\s*$")

# マスク後のソースでは文字列リテラルは全て "N" (Nはliteralsのインデックス) になっている
_IMPORT_FROM_RE = re.compile(
    r'(?<![\w$.])import\s+(?:type\s+)?(?:[\w$]+\s*,?\s*)?(?:\*\s*as\s+[\w$]+|\{[^{}]*\})?\s*from\s*"(\d+)"'
)
_IMPORT_BARE_RE = re.compile(r'(?<![\w$.])import\s*"(\d+)"')
_IMPORT_EQUALS_RE = re.compile(r'(?<![\w$.])import\s+[\w$]+\s*=\s*require\s*\(\s*"(\d+)"\s*\)')
_EXPORT_FROM_RE = re.compile(
    r'(?<![\w$.])export\s+(?:type\s+)?(?:\*(?:\s*as\s+[\w$]+)?|\{[^{}]*\})\s*from\s*"(\d+)"'
)
DECLARATION_PATTERNS = [_IMPORT_FROM_RE, _IMPORT_BARE_RE, _IMPORT_EQUALS_RE, _EXPORT_FROM_RE]


class EsModuleLexer:
    """
    JavaScript/TypeScriptのソースからコメント・テンプレート・正規表現リテラルを取り除き、
    文字列リテラルを "N" に置き換える。

    lenient=True (jsx/tsx) の場合、閉じていない引用符や / はJSXテキストとみなして通常の文字として扱う。
    """

    def __init__(self, content: str, file_path: str, *, lenient: bool = False):
        self.content = content
        self.file_path = file_path
        self.lenient = lenient
        self.pos = 0
        self.out: list[str] = []
        self.literals: list[str] = []
        self.template_depths: list[int] = []  # ${ } ごとの波括弧の深さ
        self.last_char = ""

    def run(self) -> tuple[str, list[str]]:
        content = self.content
        if content.startswith("#!"):
            self._skip_line_comment()  # shebang
        while self.pos < len(content):
            ch = content[self.pos]
            nxt = content[self.pos + 1 : self.pos + 2]
            if ch == "/" and nxt == "/":
                self._skip_line_comment()
            elif ch == "/" and nxt == "*":
                self._skip_block_comment()
            elif ch in "'\"":
                self._read_string(ch)
            elif ch == "`":
                self.pos += 1
                self._read_template()
            elif ch == "/" and self._is_regex_allowed():
                self._skip_regex()
            elif ch == "}" and self.template_depths and self.template_depths[-1] == 0:
                # ${ ... } の終わり => テンプレートの続きへ
                self.template_depths.pop()
                self.pos += 1
                self._read_template()
            else:
                self._emit_code(ch)
        if self.template_depths:
            raise ParseFailure(self.file_path, "unterminated template literal")
        return "".join(self.out), self.literals

    def _emit_code(self, ch: str) -> None:
        if self.template_depths:
            if ch == "{":
                self.template_depths[-1] += 1
            elif ch == "}":
                self.template_depths[-1] -= 1
        self.out.append(ch)
        if not ch.isspace():
            self.last_char = ch
        self.pos += 1

    def _skip_line_comment(self) -> None:
        end = self.content.find("\n", self.pos)
        if end == -1:
            end = len(self.content)
        self.out.append(" ")
        self.pos = end

    def _skip_block_comment(self) -> None:
        end = self.content.find("*/", self.pos + 2)
        if end == -1:
            raise ParseFailure(self.file_path, "unterminated block comment")
        # 行をまたぐコメントは改行を残す(文の区切りが消えないように)
        self.out.append("\n" if "\n" in self.content[self.pos : end] else " ")
        self.pos = end + 2

    def _read_string(self, quote: str) -> None:
        content = self.content
        start = self.pos
        i = start + 1
        while i < len(content):
            ch = content[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                self.literals.append(content[start + 1 : i])
                self.out.append(f'"{len(self.literals) - 1}"')
                self.last_char = '"'
                self.pos = i + 1
                return
            if ch == "\n":
                break
            i += 1
        if self.lenient:
            self._emit_code(quote)
            return
        raise ParseFailure(self.file_path, f"unterminated string literal at offset {start}")

    def _read_template(self) -> None:
        content = self.content
        start = self.pos
        i = start
        while i < len(content):
            ch = content[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                self.out.append('""')
                self.last_char = '"'
                self.pos = i + 1
                return
            if ch == "$" and content[i + 1 : i + 2] == "{":
                self.template_depths.append(0)
                self.out.append(" ")
                self.last_char = "{"
                self.pos = i + 2
                return
            i += 1
        raise ParseFailure(self.file_path, f"unterminated template literal at offset {start}")

    def _is_regex_allowed(self) -> bool:
        if self.last_char and self.last_char in "+-":
            return not _INCREMENT_BEFORE_RE.search(self.content, max(0, self.pos - 64), self.pos)
        if not self.last_char or self.last_char in REGEX_PRECEDING_CHARS:
            return True
        match = _WORD_BEFORE_RE.search(self.content, max(0, self.pos - 64), self.pos)
        return bool(match) and match.group(1) in REGEX_PRECEDING_KEYWORDS

    def _skip_regex(self) -> None:
        content = self.content
        start = self.pos
        i = start + 1
        in_class = False
        while i < len(content):
            ch = content[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "\n":
                break
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                i += 1
                while i < len(content) and (content[i].isalnum() or content[i] == "_"):
                    i += 1  # flags
                self.out.append(" ")
                self.last_char = ")"
                self.pos = i
                return
            i += 1
        if self.lenient:
            self._emit_code("/")
            return
        raise ParseFailure(self.file_path, f"unterminated regular expression literal at offset {start}")


def extract_module_specifiers(content: str, file_path: str, *, lenient: bool = False) -> list[str]:
    """import/export宣言のモジュール指定子を出現順に返す(動的import()やrequire()は対象外)"""
    masked, literals = EsModuleLexer(content, file_path, lenient=lenient).run()
    found: list[tuple[int, str]] = []
    for pattern in DECLARATION_PATTERNS:
        for match in pattern.finditer(masked):
            found.append((match.start(), literals[int(match.group(1))]))
    found.sort()
    return [specifier for _, specifier in found]


_JSONC_STRIP_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


def load_jsonc(text: str) -> dict:
    """コメントと末尾カンマを許すJSON(tsconfig.json形式)を読み込む"""
    text = _JSONC_STRIP_RE.sub(lambda m: m.group(1) or "", text)
    text = _TRAILING_COMMA_RE.sub(lambda m: m.group(1) or m.group(2), text)
    return json.loads(text)
