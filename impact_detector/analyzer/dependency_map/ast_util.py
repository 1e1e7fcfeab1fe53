import ast

from impact_detector.analyzer.dependency_map.errors import ParseFailure


def ast_parse(content: str, file_path: str = "<unknown>") -> ast.AST:
    try:
        return ast.parse(content, filename=file_path)
    except (SyntaxError, ValueError) as e:
        # ValueError: ソース中のnullバイトなど
        raise ParseFailure(file_path, f"syntax error: {e}") from e
