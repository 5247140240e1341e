"""Tests for the token stream built from tree-sitter leaves."""
from __future__ import annotations

from swiftguard.parser import parse_source
from swiftguard.tokens import SourceMap, Token, TokenKind, match_brackets


def _tokens(source: str) -> list[Token]:
    return list(parse_source(source).tokens)


def _texts(source: str) -> list[str]:
    return [t.text for t in _tokens(source)]


class TestTokenKinds:
    def test_simple_declaration(self) -> None:
        tokens: list[Token] = _tokens("let x = 1")
        assert [t.kind for t in tokens] == [
            TokenKind.IDENT, TokenKind.IDENT, TokenKind.OPERATOR, TokenKind.NUMBER,
        ]
        assert [t.text for t in tokens] == ["let", "x", "=", "1"]

    def test_positions_are_one_based(self) -> None:
        tokens: list[Token] = _tokens("let a = 1\n  foo()")
        foo: Token = tokens[4]
        assert foo.text == "foo"
        assert (foo.line, foo.column) == (2, 3)
        assert foo.start == 12

    def test_newline_before_flag(self) -> None:
        tokens: list[Token] = _tokens("a\nb.c")
        assert [t.newline_before for t in tokens] == [True, True, False, False]

    def test_range_operator(self) -> None:
        assert _texts("0..<items.count") == ["0", "..<", "items", ".", "count"]

    def test_decimal_number(self) -> None:
        assert _texts("x = 0.5") == ["x", "=", "0.5"]

    def test_escaped_identifier(self) -> None:
        tokens: list[Token] = _tokens("let `default` = 1")
        assert tokens[1].kind == TokenKind.IDENT
        assert tokens[1].text == "`default`"

    def test_availability_condition_is_split(self) -> None:
        texts: list[str] = _texts("if #available(iOS 15, *) {}")
        assert texts[:3] == ["if", "#", "available"]


class TestPostfix:
    def test_force_unwrap_is_postfix(self) -> None:
        tokens: list[Token] = _tokens("value!")
        assert tokens[1].kind == TokenKind.POSTFIX

    def test_not_equal_is_operator(self) -> None:
        tokens: list[Token] = _tokens("a != b")
        assert tokens[1].kind == TokenKind.OPERATOR
        assert tokens[1].text == "!="

    def test_forced_cast_bang_is_postfix(self) -> None:
        tokens: list[Token] = _tokens("x as! Int")
        assert [t.text for t in tokens] == ["x", "as", "!", "Int"]
        assert tokens[2].kind == TokenKind.POSTFIX

    def test_prefix_not_is_operator(self) -> None:
        tokens: list[Token] = _tokens("if !done {}")
        assert tokens[1].kind == TokenKind.OPERATOR

    def test_optional_chaining(self) -> None:
        tokens: list[Token] = _tokens("self?.view")
        assert tokens[1].kind == TokenKind.POSTFIX
        assert tokens[1].text == "?"

    def test_nil_coalescing_is_operator(self) -> None:
        tokens: list[Token] = _tokens("a ?? b")
        assert tokens[1].kind == TokenKind.OPERATOR


class TestSkippedText:
    def test_line_comment(self) -> None:
        assert _texts("let x = 1 // trailing\n") == ["let", "x", "=", "1"]

    def test_nested_block_comment(self) -> None:
        assert _texts("let a = 1 /* outer /* inner */ still */ + 2") == [
            "let", "a", "=", "1", "+", "2",
        ]

    def test_block_comment_marks_newline(self) -> None:
        tokens: list[Token] = _tokens("f(/*\n*/ b)")
        assert tokens[2].text == "b"
        assert tokens[2].newline_before


class TestStrings:
    def test_interpolation_is_one_token(self) -> None:
        tokens: list[Token] = _tokens('"a \\(b + "c") d"')
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.STRING

    def test_raw_string(self) -> None:
        tokens: list[Token] = _tokens('#"a"b"#')
        assert len(tokens) == 1
        assert tokens[0].text == '#"a"b"#'

    def test_multiline_string(self) -> None:
        tokens: list[Token] = _tokens('let s = """\nline "one"\n"""\nx')
        assert tokens[3].kind == TokenKind.STRING
        assert tokens[4].text == "x"
        assert tokens[4].line == 4

    def test_escaped_quote(self) -> None:
        tokens: list[Token] = _tokens('"say \\"hi\\""')
        assert len(tokens) == 1


class TestSourceMap:
    def test_ascii_offsets_are_unchanged(self) -> None:
        source: str = "let x = 1"
        source_map: SourceMap = SourceMap(source, source.encode("utf-8"))
        assert source_map.char_offset(4) == 4

    def test_multibyte_offsets(self) -> None:
        source: str = "aé\nb"
        source_map: SourceMap = SourceMap(source, source.encode("utf-8"))
        assert source_map.char_offset(4) == 3
        assert source_map.position(3) == (2, 1)

    def test_tokens_use_character_offsets(self) -> None:
        tokens: list[Token] = _tokens('let s = "é"\nlet t = 1\n')
        last: Token = tokens[-1]
        assert last.text == "1"
        assert last.start == 20
        assert (last.line, last.column) == (2, 9)


class TestMatchBrackets:
    def test_pairs_both_directions(self) -> None:
        tokens: list[Token] = _tokens("f(a[0])")
        pairs: dict[int, int] = match_brackets(tokens)
        assert pairs[1] == 6
        assert pairs[6] == 1
        assert pairs[3] == 5

    def test_unclosed_opener_left_out(self) -> None:
        tokens: list[Token] = _tokens("f(a[0])")[:-1]
        pairs: dict[int, int] = match_brackets(tokens)
        assert 1 not in pairs
        assert pairs[3] == 5
