from pagediff.core.align import align
from pagediff.core.merge import annotate_modified, render_merged

BASE = "<html><head><title>t</title></head><body><p>A</p></body></html>"
CURR = "<html><head><title>t</title></head><body><p>B</p></body></html>"


def test_changes_are_wrapped_in_del_and_ins():
    html = render_merged(align(BASE, CURR))
    assert '<p><del class="diff-deleted">A</del><ins class="diff-added">B</ins></p>' in html


def test_highlight_style_goes_right_after_head():
    html = render_merged(align(BASE, CURR))
    assert html.index("<style>") == len("<html><head>")


def test_base_href_is_injected_and_escaped():
    html = render_merged(align(BASE, CURR), base_url="https://example.com/a?x=1&y=2")
    assert '<base href="https://example.com/a?x=1&amp;y=2">' in html
    assert html.index("<base") < html.index("<style>")


def test_base_href_quotes_cannot_break_out_of_the_attribute():
    html = render_merged(align("<p>A</p>", "<p>B</p>"), base_url='https://e.com/"><x>')
    assert '<base href="https://e.com/&quot;&gt;&lt;x&gt;">' in html


def test_fragment_without_head_gets_extras_prepended():
    html = render_merged(align("<p>A</p>", "<p>B</p>"))
    assert html.startswith("<style>")


def test_modified_tag_keeps_old_values():
    out = annotate_modified('<img src="1.png" alt="a">', '<img src="2.png" alt="a">')
    assert out == '<img src="2.png" alt="a" data-diff-old-src="1.png" class="diff-modified">'


def test_added_attribute_is_recorded_as_empty_old_value():
    out = annotate_modified('<a href="/x">', '<a href="/x" target="_blank">')
    assert out == '<a href="/x" target="_blank" data-diff-old-target class="diff-modified">'


def test_merged_modify_uses_annotated_tag():
    ops = align('<img src="1.png">', '<img src="2.png">', detect_modify=True)
    html = render_merged(ops)
    assert 'data-diff-old-src="1.png"' in html
    assert "<del" not in html
