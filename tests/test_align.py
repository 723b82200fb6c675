import doctest

import pytest

import pagediff.core.align
from pagediff.core.align import (DELETE, EQUAL, INSERT, MODIFY, Operation,
                                 align, baseline_text, current_text, lcs_table)
from pagediff.core.tokenize import tokenize

PAIRS = [
    ('<div id="a">Hello</div>', '<div id="a">Hello World</div>'),
    ("<p>A</p>", "<p>B</p>"),
    ('<img src="1.png">', '<img src="2.png">'),
    ("<ul><li>one</li><li>two</li></ul>", "<ul><li>two</li><li>three</li></ul>"),
    ("x y", "z"),
    ("", "<b>new</b>"),
    ("<b>old</b>", ""),
    ("same", "same"),
    ('<a href="/x" class="btn">Go</a> text', '<a href="/y">Go!</a>  text more'),
]


def test_module_doctests():
    res = doctest.testmod(pagediff.core.align, verbose=False)
    assert res.failed == 0


def test_lcs_table_lengths():
    dp = lcs_table(list("abcbdab"), list("bdcaba"))
    assert dp[0][0] == 4
    assert dp[7][0] == 0


def test_identity_diff_is_all_equal():
    tokens = tokenize('<div class="x">Hello, <b>world</b>!</div>')
    ops = align(tokens, tokens)
    assert [op.kind for op in ops] == [EQUAL] * len(tokens)
    assert [op.payload for op in ops] == [t.content for t in tokens]


def test_empty_inputs():
    assert align("", "") == []
    assert align("", "<p>x y</p>") == [Operation(INSERT, "<p>x y</p>")]
    assert align("<p>x y</p>", "") == [Operation(DELETE, "<p>x y</p>")]


@pytest.mark.parametrize("a, b", PAIRS)
@pytest.mark.parametrize("coalesce", [True, False])
@pytest.mark.parametrize("detect_modify", [True, False])
def test_operations_cover_both_inputs(a, b, coalesce, detect_modify):
    ops = align(a, b, coalesce=coalesce, detect_modify=detect_modify)
    assert baseline_text(ops) == a
    assert current_text(ops) == b


def test_inserted_word_keeps_prefix_unchanged():
    ops = align('<div id="a">Hello</div>', '<div id="a">Hello World</div>')
    assert ops == [
        Operation(EQUAL, '<div id="a">'),
        Operation(EQUAL, "Hello"),
        Operation(INSERT, " World"),
        Operation(EQUAL, "</div>"),
    ]


def test_replaced_text_is_one_delete_insert_pair():
    ops = align("<p>A</p>", "<p>B</p>")
    assert ops == [
        Operation(EQUAL, "<p>"),
        Operation(DELETE, "A"),
        Operation(INSERT, "B"),
        Operation(EQUAL, "</p>"),
    ]


def test_attribute_change_is_a_single_modify():
    ops = align('<img src="1.png">', '<img src="2.png">', detect_modify=True)
    assert ops == [Operation(MODIFY, '<img src="2.png">', '<img src="1.png">')]


def test_attribute_change_without_detection_is_delete_insert():
    ops = align('<img src="1.png">', '<img src="2.png">')
    assert [op.kind for op in ops] == [DELETE, INSERT]


def test_modify_found_after_a_text_change():
    ops = align(
        '<p>x</p><img src="1.png">',
        '<p>y</p><img src="2.png">',
        detect_modify=True,
    )
    assert [op.kind for op in ops] == [EQUAL, DELETE, INSERT, EQUAL, MODIFY]


def test_different_tag_names_are_not_modified():
    ops = align("<b>", "<i>", detect_modify=True)
    assert [op.kind for op in ops] == [DELETE, INSERT]


def test_block_absorbs_rest_when_one_side_runs_out():
    assert align("x y", "z") == [Operation(DELETE, "x y"), Operation(INSERT, "z")]


def test_stepwise_mode_prefers_insert_on_ties():
    ops = align("a b", "a c", coalesce=False)
    assert ops == [
        Operation(EQUAL, "a"),
        Operation(EQUAL, " "),
        Operation(INSERT, "c"),
        Operation(DELETE, "b"),
    ]


def test_coalescing_joins_a_differing_block():
    ops = align("<p>red green</p>", "<p>blue</p>")
    assert ops == [
        Operation(EQUAL, "<p>"),
        Operation(DELETE, "red green"),
        Operation(INSERT, "blue"),
        Operation(EQUAL, "</p>"),
    ]


def test_shared_prefix_and_suffix_stay_out_of_the_table(monkeypatch):
    sizes = []
    real_table = pagediff.core.align.lcs_table

    def spy(a, b):
        sizes.append((len(a), len(b)))
        return real_table(a, b)

    monkeypatch.setattr(pagediff.core.align, "lcs_table", spy)
    filler = "<li>item</li>" * 500
    ops = align(filler + "<p>A</p>" + filler, filler + "<p>B</p>" + filler)
    assert sizes == [(1, 1)]
    assert [op for op in ops if op.kind != EQUAL] == [
        Operation(DELETE, "A"),
        Operation(INSERT, "B"),
    ]
    assert ops[-1] == Operation(EQUAL, "</li>")
