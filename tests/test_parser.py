"""Tests for the expression parser."""

from __future__ import annotations

import pytest

from spel.ast_nodes import (
    Assign,
    BeanRef,
    BinaryExpr,
    BooleanLit,
    CompoundExpr,
    ConstructorRef,
    Elvis,
    FloatLit,
    FunctionRef,
    Indexer,
    InlineList,
    InlineMap,
    IntLit,
    LongLit,
    MethodRef,
    NullLit,
    Projection,
    PropertyRef,
    RealLit,
    Selection,
    SelectionKind,
    StringLit,
    Ternary,
    TypeRef,
    UnaryExpr,
    VariableRef,
    children,
    walk,
)
from spel.errors import ExpressionSyntaxError, Message
from spel.parser import Parser, parse_expression
from spel.source import Span
from tests.helpers import parse, parse_fails


def compound_parts(expression: str) -> list:
    node = parse(expression)
    assert isinstance(node, CompoundExpr)
    return node.parts


class TestLiterals:
    def test_int(self):
        node = parse("42")
        assert node == IntLit("42", 42, 10, Span(0, 2))

    def test_int_max(self):
        assert parse("2147483647").value == 2147483647

    def test_int_overflow(self):
        err = parse_fails("2147483648", Message.NOT_AN_INTEGER)
        assert err.position == 0
        assert isinstance(err, ExpressionSyntaxError)

    def test_hex_int(self):
        node = parse("0x1F")
        assert isinstance(node, IntLit)
        assert node.value == 31
        assert node.radix == 16

    def test_hex_int_overflow(self):
        parse_fails("0x80000000", Message.NOT_AN_INTEGER)

    def test_long(self):
        node = parse("9223372036854775807L")
        assert isinstance(node, LongLit)
        assert node.value == 9223372036854775807

    def test_long_overflow(self):
        parse_fails("9223372036854775808L", Message.NOT_A_LONG)

    def test_hex_long(self):
        node = parse("0xFFL")
        assert isinstance(node, LongLit)
        assert node.value == 255
        assert node.span == Span(0, 5)

    def test_real(self):
        node = parse("1.5")
        assert isinstance(node, RealLit)
        assert node.value == 1.5

    def test_real_suffixes(self):
        assert parse("2d") == RealLit("2d", 2.0, Span(0, 2))
        assert parse("1e3").value == 1000.0

    def test_float(self):
        node = parse("1.5f")
        assert isinstance(node, FloatLit)
        assert node.value == 1.5

    def test_string(self):
        assert parse("'hello'") == StringLit("hello", Span(0, 7))

    def test_string_escape(self):
        assert parse("'it''s'").value == "it's"

    def test_booleans(self):
        assert parse("true") == BooleanLit(True, Span(0, 4))
        assert parse("FALSE") == BooleanLit(False, Span(0, 5))

    def test_null(self):
        assert parse("null") == NullLit(Span(0, 4))
        assert isinstance(parse("Null"), NullLit)


class TestPrecedence:
    def test_product_binds_tighter_than_sum(self):
        node = parse("1 + 2 * 3")
        assert isinstance(node, BinaryExpr)
        assert node.op == "+"
        assert isinstance(node.right, BinaryExpr)
        assert node.right.op == "*"

    def test_sum_is_left_associative(self):
        node = parse("1 - 2 - 3")
        assert node.op == "-"
        assert isinstance(node.left, BinaryExpr)
        assert node.right.value == 3

    def test_parens_override(self):
        node = parse("(1 + 2) * 3")
        assert node.op == "*"
        assert node.left.op == "+"

    def test_paren_returns_inner_node(self):
        assert parse("(42)") == IntLit("42", 42, 10, Span(1, 3))

    def test_and_binds_tighter_than_or(self):
        node = parse("a or b and c")
        assert node.op == "or"
        assert node.right.op == "and"

    def test_symbolic_logical_operators(self):
        node = parse("a || b && c")
        assert node.op == "or"
        assert node.right.op == "and"

    def test_logical_keywords_case_insensitive(self):
        assert parse("a AND b").op == "and"
        assert parse("a Or b").op == "or"

    def test_relational_below_sum(self):
        node = parse("a + 1 > b")
        assert node.op == ">"
        assert node.left.op == "+"

    def test_relational_does_not_chain(self):
        err = parse_fails("1 < 2 < 3", Message.MORE_INPUT)
        assert err.position == 6

    def test_power(self):
        node = parse("2 ^ 3 * 4")
        assert node.op == "*"
        assert node.left.op == "^"

    def test_unary_binds_tighter_than_power(self):
        node = parse("-2 ^ 2")
        assert node.op == "^"
        assert node.left == UnaryExpr(
            "-", IntLit("2", 2, 10, Span(1, 2)), False, Span(0, 2),
        )

    def test_ternary(self):
        node = parse("name == null ? 'unknown' : name")
        assert isinstance(node, Ternary)
        assert isinstance(node.condition, BinaryExpr)
        assert node.condition.op == "=="
        assert isinstance(node.condition.right, NullLit)
        assert node.if_true == StringLit("unknown", Span(15, 24))
        assert node.if_false == PropertyRef("name", False, Span(27, 31))

    def test_nested_ternary(self):
        node = parse("a ? b ? 1 : 2 : 3")
        assert isinstance(node.if_true, Ternary)

    def test_elvis(self):
        node = parse("a ?: 'x'")
        assert isinstance(node, Elvis)
        assert node.value == PropertyRef("a", False, Span(0, 1))

    def test_assign(self):
        node = parse("a = b + 1")
        assert isinstance(node, Assign)
        assert node.value.op == "+"

    def test_assign_does_not_chain(self):
        parse_fails("a = b = c", Message.MORE_INPUT)


class TestOperators:
    def test_textual_relational(self):
        for text, op in [("gt", ">"), ("ge", ">="), ("lt", "<"), ("le", "<="),
                         ("eq", "=="), ("ne", "!=")]:
            assert parse(f"a {text} b").op == op, text

    def test_textual_arithmetic(self):
        assert parse("a div 2").op == "/"
        assert parse("a MOD 2").op == "%"

    def test_keyword_relational(self):
        assert parse("a instanceof T(String)").op == "instanceof"
        assert parse("name matches '[a-z]+'").op == "matches"
        node = parse("x between {1, 5}")
        assert node.op == "between"
        assert isinstance(node.right, InlineList)

    def test_not(self):
        assert parse("!a") == UnaryExpr("!", PropertyRef("a", False, Span(1, 2)), False, Span(0, 2))
        assert parse("not a").op == "!"

    def test_unary_minus_plus(self):
        assert parse("-a").op == "-"
        assert parse("+a").op == "+"

    def test_prefix_increment(self):
        node = parse("++a")
        assert node == UnaryExpr("++", PropertyRef("a", False, Span(2, 3)), False, Span(0, 3))

    def test_postfix_increment(self):
        node = parse("a--")
        assert node == UnaryExpr("--", PropertyRef("a", False, Span(0, 1)), True, Span(0, 3))

    def test_postfix_binds_to_right_operand(self):
        node = parse("a + b++")
        assert node.op == "+"
        assert node.right == UnaryExpr("++", PropertyRef("b", False, Span(4, 5)), True, Span(4, 7))

    def test_postfix_then_increment_operand_rejected(self):
        err = parse_fails("a++ ++ b", Message.NOT_EXPECTED_TOKEN)
        assert err.position == 4

    def test_postfix_then_dangling_increment(self):
        err = parse_fails("a++ ++", Message.RIGHT_OPERAND_PROBLEM)
        assert err.position == 4

    def test_missing_right_operand_points_at_operator(self):
        err = parse_fails("1 + ", Message.RIGHT_OPERAND_PROBLEM)
        assert err.position == 2

    def test_missing_left_operand(self):
        err = parse_fails("* 2", Message.LEFT_OPERAND_PROBLEM)
        assert err.position == 0

    def test_missing_unary_operand(self):
        err = parse_fails("!", Message.RIGHT_OPERAND_PROBLEM)
        assert err.position == 0

    def test_missing_ternary_branch(self):
        parse_fails("a ? 1 :", Message.RIGHT_OPERAND_PROBLEM)
        parse_fails("a ? 1", Message.OUT_OF_DATA)

    def test_missing_elvis_fallback(self):
        err = parse_fails("a ?:", Message.RIGHT_OPERAND_PROBLEM)
        assert err.position == 2

    def test_missing_assign_target(self):
        parse_fails("= 1", Message.LEFT_OPERAND_PROBLEM)


class TestNavigation:
    def test_property_chain(self):
        parts = compound_parts("a.b[0].c")
        assert parts == [
            PropertyRef("a", False, Span(0, 1)),
            PropertyRef("b", False, Span(2, 3)),
            Indexer(IntLit("0", 0, 10, Span(4, 5)), Span(3, 6)),
            PropertyRef("c", False, Span(7, 8)),
        ]

    def test_null_safe(self):
        parts = compound_parts("a?.b")
        assert parts[1] == PropertyRef("b", True, Span(3, 4))
        assert compound_parts("a.b")[1].null_safe is False

    def test_method_call(self):
        node = parse("foo(1, 'a')")
        assert isinstance(node, MethodRef)
        assert node.name == "foo"
        assert len(node.args) == 2
        assert node.span == Span(0, 11)

    def test_method_trailing_comma(self):
        assert len(parse("foo(1,)").args) == 1

    def test_method_no_args(self):
        assert parse("foo()").args == []

    def test_null_safe_method(self):
        parts = compound_parts("a?.b()")
        assert isinstance(parts[1], MethodRef)
        assert parts[1].null_safe is True

    def test_int_method_call(self):
        parts = compound_parts("3.toString()")
        assert parts[0].value == 3
        assert parts[1].name == "toString"

    def test_keyword_after_dot_is_property(self):
        parts = compound_parts("a.null.new.T")
        assert [p.name for p in parts[1:]] == ["null", "new", "T"]

    def test_textual_operator_as_property(self):
        assert compound_parts("a.ne")[1] == PropertyRef("ne", False, Span(2, 4))
        assert parse("gt") == PropertyRef("gt", False, Span(0, 2))

    def test_variable(self):
        assert parse("#root") == VariableRef("root", Span(0, 5))

    def test_function(self):
        node = parse("#max(1, 2)")
        assert isinstance(node, FunctionRef)
        assert node.name == "max"
        assert node.span == Span(0, 10)

    def test_dotted_function(self):
        parts = compound_parts("a.#f()")
        assert isinstance(parts[1], FunctionRef)

    def test_hash_requires_identifier(self):
        err = parse_fails("#1", Message.NOT_EXPECTED_TOKEN)
        assert err.position == 1

    def test_indexer_start(self):
        assert isinstance(parse("[0]"), Indexer)

    def test_nothing_after_dot(self):
        err = parse_fails("a.", Message.OUT_OF_DATA)
        assert err.position == 1

    def test_bad_data_after_dot(self):
        err = parse_fails("a.1", Message.UNEXPECTED_DATA_AFTER_DOT)
        assert err.position == 1
        assert "'1'" in err.detail


class TestCollectionOperations:
    def test_selection(self):
        parts = compound_parts("items.?[price > 10]")
        sel = parts[1]
        assert isinstance(sel, Selection)
        assert sel.kind is SelectionKind.ALL
        assert sel.expr.op == ">"
        assert sel.expr.left == PropertyRef("price", False, Span(8, 13))
        assert sel.expr.right.value == 10

    def test_selection_first_and_last(self):
        assert compound_parts("a.^[x]")[1].kind is SelectionKind.FIRST
        assert compound_parts("a.$[x]")[1].kind is SelectionKind.LAST

    def test_null_safe_selection(self):
        assert compound_parts("a?.?[x]")[1].null_safe is True

    def test_projection(self):
        proj = compound_parts("list.![name]")[1]
        assert isinstance(proj, Projection)
        assert proj.expr == PropertyRef("name", False, Span(7, 11))
        assert proj.span == Span(5, 12)

    def test_empty_selection(self):
        err = parse_fails("list.?[]", Message.MISSING_SELECTION_EXPRESSION)
        assert err.position == 5

    def test_empty_projection(self):
        parse_fails("list.![]", Message.MISSING_SELECTION_EXPRESSION)


class TestInlineCollections:
    def test_empty_list(self):
        assert parse("{}") == InlineList([], Span(0, 2))

    def test_empty_map(self):
        assert parse("{:}") == InlineMap([], Span(0, 3))

    def test_single_element_list(self):
        assert len(parse("{1}").elements) == 1

    def test_list(self):
        node = parse("{1, 2, 3}")
        assert isinstance(node, InlineList)
        assert [e.value for e in node.elements] == [1, 2, 3]

    def test_map(self):
        node = parse("{'a': 1, 'b': 2}")
        assert isinstance(node, InlineMap)
        assert [(k.value, v.value) for k, v in node.entries] == [("a", 1), ("b", 2)]

    def test_nested(self):
        node = parse("{{1}, {2: 3}}")
        assert isinstance(node.elements[0], InlineList)
        assert isinstance(node.elements[1], InlineMap)

    def test_unexpected_token(self):
        err = parse_fails("{1 2}", Message.NOT_EXPECTED_TOKEN)
        assert err.position == 3

    def test_unclosed(self):
        parse_fails("{1", Message.OUT_OF_DATA)

    def test_map_missing_colon(self):
        parse_fails("{1: 2, 3}", Message.NOT_EXPECTED_TOKEN)

    def test_type_name_as_map_key(self):
        parts = compound_parts("map[T]")
        assert parts[1] == Indexer(PropertyRef("T", False, Span(4, 5)), Span(3, 6))

    def test_new_as_map_key(self):
        parts = compound_parts("map[new]")
        assert parts[1].index == PropertyRef("new", False, Span(4, 7))


class TestTypesAndConstructors:
    def test_type_reference(self):
        node = parse("T(java.lang.String)")
        assert isinstance(node, TypeRef)
        assert node.name.name == "java.lang.String"
        assert [p.name for p in node.name.pieces] == ["java", "lang", "String"]
        assert node.dimensions == 0
        assert node.span == Span(0, 19)

    def test_array_type_reference(self):
        assert parse("T(int[][])").dimensions == 2

    def test_static_call_on_type(self):
        parts = compound_parts("T(Math).max(1, 2)")
        assert isinstance(parts[0], TypeRef)
        assert isinstance(parts[1], MethodRef)

    def test_lowercase_t_is_method(self):
        assert isinstance(parse("t(x)"), MethodRef)

    def test_type_reference_needs_name(self):
        parse_fails("T()", Message.NOT_EXPECTED_TOKEN)

    def test_constructor(self):
        node = parse("new java.util.ArrayList()")
        assert isinstance(node, ConstructorRef)
        assert node.type_name.name == "java.util.ArrayList"
        assert node.args == []
        assert node.is_array is False

    def test_constructor_args(self):
        node = parse("new Foo(1, 'a')")
        assert len(node.args) == 2
        assert node.span == Span(0, 15)

    def test_array_constructor_with_initializer(self):
        node = parse("new int[3]{1,2,3}")
        assert isinstance(node, ConstructorRef)
        assert node.is_array
        assert node.dimensions == [IntLit("3", 3, 10, Span(8, 9))]
        assert isinstance(node.initializer, InlineList)
        assert [e.value for e in node.initializer.elements] == [1, 2, 3]
        assert node.span == Span(0, 17)

    def test_array_constructor_open_dimension(self):
        node = parse("new int[][2]")
        assert node.dimensions[0] is None
        assert node.dimensions[1].value == 2
        assert node.initializer is None

    def test_missing_constructor_args(self):
        err = parse_fails("new Foo", Message.MISSING_CONSTRUCTOR_ARGS)
        assert err.position == 7

    def test_constructor_runs_out_of_arguments(self):
        err = parse_fails("new Foo(1", Message.RUN_OUT_OF_ARGUMENTS)
        assert err.position == 7

    def test_method_runs_out_of_arguments(self):
        err = parse_fails("foo(", Message.RUN_OUT_OF_ARGUMENTS)
        assert err.position == 3

    def test_method_missing_close(self):
        err = parse_fails("foo(1 2)", Message.NOT_EXPECTED_TOKEN)
        assert err.position == 6


class TestBeanReferences:
    def test_bean(self):
        assert parse("@myBean") == BeanRef("myBean", False, Span(0, 7))

    def test_factory_bean(self):
        assert parse("&myFactory") == BeanRef("myFactory", True, Span(0, 10))

    def test_quoted_bean(self):
        assert parse("@'my.bean'").name == "my.bean"

    def test_bean_method_call(self):
        parts = compound_parts("@svc.run()")
        assert isinstance(parts[0], BeanRef)
        assert parts[1].name == "run"

    def test_invalid_bean(self):
        err = parse_fails("@1", Message.INVALID_BEAN_REFERENCE)
        assert err.position == 0

    def test_bean_at_end(self):
        parse_fails("&", Message.INVALID_BEAN_REFERENCE)


class TestTopLevel:
    def test_empty(self):
        err = parse_fails("", Message.OUT_OF_DATA)
        assert err.position == 0

    def test_trailing_input(self):
        err = parse_fails("a b", Message.MORE_INPUT)
        assert err.position == 2

    def test_unexpected_start(self):
        err = parse_fails(")", Message.NOT_EXPECTED_TOKEN)
        assert err.position == 0

    def test_unclosed_paren(self):
        err = parse_fails("(1", Message.OUT_OF_DATA)
        assert err.position == 2

    def test_lexical_errors_propagate(self):
        parse_fails("'abc", Message.NON_TERMINATING_QUOTED_STRING)

    def test_parsed_expression_keeps_source(self):
        parsed = parse_expression("1+2")
        assert parsed.expression == "1+2"
        assert str(parsed) == "1 + 2"

    def test_error_message(self):
        err = parse_fails("1 + ", Message.RIGHT_OPERAND_PROBLEM)
        assert str(err) == "E206 (syntax) at position 2: problem parsing right operand"
        assert err.expression == "1 + "


class TestSpans:
    EXPRESSIONS = [
        "3 + 4 * 2",
        "a.b[0].c",
        "items.?[price > 10]",
        "new int[3]{1,2,3}",
        "name == null ? 'unknown' : name",
        "#f(a?.b, {1: 'x'}) ?: @bean.run(-x++, T(a.B[]))",
        "(a = 1) or !list.![x ^ 2].size() between {0, 10}",
    ]

    def test_children_within_parent(self):
        for expression in self.EXPRESSIONS:
            for node in walk(parse(expression)):
                for child in children(node):
                    assert node.span.start <= child.span.start, (expression, node, child)
                    assert child.span.end <= node.span.end, (expression, node, child)

    def test_operator_spans_run_from_first_to_last_operand(self):
        composite = (BinaryExpr, Assign, Elvis, Ternary, CompoundExpr)
        seen = set()
        for expression in self.EXPRESSIONS:
            for node in walk(parse(expression)):
                if isinstance(node, composite):
                    seen.add(type(node))
                    parts = list(children(node))
                    expected = Span(parts[0].span.start, parts[-1].span.end)
                    assert node.span == expected, (expression, node)
                elif isinstance(node, UnaryExpr) and node.postfix:
                    seen.add(UnaryExpr)
                    assert node.span.start == node.operand.span.start, (expression, node)
        assert seen == {*composite, UnaryExpr}

    def test_spans_within_source(self):
        for expression in self.EXPRESSIONS:
            for node in walk(parse(expression)):
                assert 0 <= node.span.start < node.span.end <= len(expression)

    def test_binary_span_covers_operands(self):
        node = parse("3 + 4 * 2")
        assert node.span == Span(0, 9)
        assert node.right.span == Span(4, 9)


class TestDeterminism:
    def test_fresh_parsers_agree(self):
        for expression in TestSpans.EXPRESSIONS:
            assert parse(expression) == parse(expression)

    def test_reused_parser_agrees(self):
        parser = Parser()
        first = [parser.parse(e).ast for e in TestSpans.EXPRESSIONS]
        second = [parser.parse(e).ast for e in TestSpans.EXPRESSIONS]
        assert first == second

    def test_reused_parser_recovers_after_error(self):
        parser = Parser()
        with pytest.raises(ExpressionSyntaxError):
            parser.parse("1 +")
        assert parser.parse("1 + 2").ast == parse("1 + 2")


class TestEndToEnd:
    def test_arithmetic(self):
        node = parse("3 + 4 * 2")
        assert node == BinaryExpr(
            IntLit("3", 3, 10, Span(0, 1)),
            "+",
            BinaryExpr(
                IntLit("4", 4, 10, Span(4, 5)), "*", IntLit("2", 2, 10, Span(8, 9)), Span(4, 9),
            ),
            Span(0, 9),
        )

    def test_compound_chain(self):
        parts = compound_parts("a.b[0].c")
        assert [type(p) for p in parts] == [PropertyRef, PropertyRef, Indexer, PropertyRef]

    def test_selection(self):
        sel = compound_parts("items.?[price > 10]")[1]
        assert sel.kind is SelectionKind.ALL
        assert sel.expr.op == ">"

    def test_array_constructor(self):
        node = parse("new int[3]{1,2,3}")
        assert len(node.dimensions) == 1
        assert len(node.initializer.elements) == 3

    def test_ternary(self):
        node = parse("name == null ? 'unknown' : name")
        assert node.condition.op == "=="
        assert isinstance(node.condition.right, NullLit)
