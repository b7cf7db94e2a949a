"""Tests for specoutline.outline module.

Most documents come from the "Sample outlines" section of the HTML Standard.
"""
from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from specoutline.outline import (
    IMPLIED,
    NO_RANK,
    OutlineError,
    Section,
    _OutlineWalker,
    build_outline,
    flatten_all_sections,
    flatten_sections,
    heading_rank,
    outline_to_text,
    section_label,
)


def _outline(html: str):
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body if soup.body is not None else soup
    return soup, build_outline(root)


def _label_of(soup: BeautifulSoup, result, element_id: str) -> str | None:
    section = result.node_to_section.get(soup.find(id=element_id))
    return section_label(section) if section is not None else None


class TestHeadingRank:
    def test_heading_levels(self) -> None:
        soup = BeautifulSoup("<h1></h1><h4></h4><h6></h6>", "html.parser")
        assert [heading_rank(h) for h in soup.find_all(True)] == [-1, -4, -6]

    def test_hgroup_takes_highest_rank(self) -> None:
        soup = BeautifulSoup("<hgroup><h3>a</h3><h2>b</h2><h5>c</h5></hgroup>", "html.parser")
        assert heading_rank(soup.hgroup) == -2

    def test_non_headings(self) -> None:
        soup = BeautifulSoup("<p>x</p><hgroup></hgroup>", "html.parser")
        assert heading_rank(soup.p) == NO_RANK
        assert heading_rank(soup.hgroup) == NO_RANK
        assert heading_rank(IMPLIED) == NO_RANK
        assert heading_rank(None) == NO_RANK


class TestRankNesting:
    def test_lower_rank_nests_and_equal_rank_is_sibling(self) -> None:
        soup, result = _outline(
            "<body><h1>A</h1><h2>B</h2><h3>C</h3><h2>D</h2></body>"
        )
        assert len(result.outline) == 1
        a = result.outline[0]
        assert section_label(a) == "A"
        assert [section_label(s) for s in a.sub_sections] == ["B", "D"]
        b, d = a.sub_sections
        assert [section_label(s) for s in b.sub_sections] == ["C"]
        assert d.sub_sections == []
        assert b.parent is a and d.parent is a

    def test_sibling_heading_content(self) -> None:
        soup, result = _outline("""
<body>
<h1>The Tax Book</h1>
<h2>Earning money</h2>
<p>Earning money is good.</p>
<h3>Getting a job</h3>
<p>To earn money you typically need a job.</p>
<h2>Spending money</h2>
<p>Spending is what money is mainly used for.</p>
<h3>Cheap things</h3>
<p>Buying cheap things often not cost-effective.</p>
<h3>Expensive things</h3>
<p>The most expensive thing is often not the most cost-effective either.</p>
<h2>Investing money</h2>
<p id="charlie">You can lend your money to other people.</p>
<h2>Losing money</h2>
<p>If you spend money or invest money, sooner or later you will lose money.</p>
<h3>Poor judgement</h3>
<p>Usually if you lose money it's because you made a mistake.</p>
</body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - The Tax Book",
            "1 - Earning money",
            "2 - Getting a job",
            "1 - Spending money",
            "2 - Cheap things",
            "2 - Expensive things",
            "1 - Investing money",
            "1 - Losing money",
            "2 - Poor judgement",
        ])
        assert _label_of(soup, result, "charlie") == "Investing money"

    def test_multiple_top_level_headings(self) -> None:
        soup, result = _outline("""
<body>
<h1>Apples</h1>
<p>Pomaceous.</p>
<h1>Bananas</h1>
<p id="charlie">Edible.</p>
<h1>Carambola</h1>
<p>Star.</p>
</body>""")
        assert outline_to_text(result.outline) == "0 - Apples\n0 - Bananas\n0 - Carambola"
        assert _label_of(soup, result, "charlie") == "Bananas"


class TestSectioningContent:
    def test_nested_sections(self) -> None:
        soup, result = _outline("""
<body>
<h1>The Tax Book</h1>
<section>
 <h1>Earning money</h1>
 <section>
  <h1>Getting a job</h1>
 </section>
</section>
<section>
 <h1>Spending money</h1>
 <section><h1>Cheap things</h1></section>
 <section><h1>Expensive things</h1></section>
</section>
<section>
 <h1>Investing money</h1>
 <p id="charlie">You can lend your money to other people.</p>
</section>
</body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - The Tax Book",
            "1 - Earning money",
            "2 - Getting a job",
            "1 - Spending money",
            "2 - Cheap things",
            "2 - Expensive things",
            "1 - Investing money",
        ])
        assert _label_of(soup, result, "charlie") == "Investing money"

    def test_section_without_heading_gets_implied_heading(self) -> None:
        soup, result = _outline("<body><section><p>text, no heading</p></section></body>")
        section = result.node_to_section.get(soup.section)
        assert section is not None
        assert section.root is soup.section
        assert section.heading is IMPLIED
        assert section.is_implied
        assert section_label(section) == "(implied)"

    def test_implied_sections(self) -> None:
        soup, result = _outline("""
<body>
 <nav><p><a href="/">Home</a></p></nav>
 <p>Hello world.</p>
 <aside><p id="charlie">My cat is cute.</p></aside>
</body>""")
        assert outline_to_text(result.outline) == "0 - (implied)\n1 - (implied)\n1 - (implied)"
        assert _label_of(soup, result, "charlie") == "(implied)"

    def test_sectioning_content_mixed_with_headings(self) -> None:
        soup, result = _outline("""
<body><section>
 <h1>Apples</h1><p>Pomaceous.</p>
 <h1>Bananas</h1><p id="charlie">Edible.</p>
 <h1>Carambola</h1><p>Star.</p>
</section></body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - (implied)", "1 - Apples", "1 - Bananas", "1 - Carambola",
        ])
        assert _label_of(soup, result, "charlie") == "Bananas"

    def test_never_rises_headings_above_other_sections(self) -> None:
        soup, result = _outline("""
<body>
<section>
 <h1>A plea from our caretakers</h1>
 <p>Please, we beg of you, send help!</p>
</section>
<h1>Feathers</h1>
<p id="charlie">Epidermal growths.</p>
</body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - (implied)", "1 - A plea from our caretakers", "0 - Feathers",
        ])
        assert _label_of(soup, result, "charlie") == "Feathers"

    def test_late_headings(self) -> None:
        soup, result = _outline("""
<body>
<h1>Ray's blog</h1>
<article>
 <header>
  <nav>
   <a href="?t=-1d">Yesterday</a>;
   <a href="?t=-7d" id="charlie">Last week</a>;
  </nav>
  <h1>We're adopting a child!</h1>
 </header>
 <p>As of today, Janine and I have signed the papers.</p>
</article>
</body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - Ray's blog",
            "1 - (implied)",
            "2 - (implied)",
            "1 - We're adopting a child!",
        ])
        assert _label_of(soup, result, "charlie") == "(implied)"

    def test_sectioning_element_is_mapped_to_its_own_section(self) -> None:
        soup, result = _outline("<body><h1>T</h1><section id=s><h2>S</h2></section></body>")
        section = result.node_to_section.get(soup.find(id="s"))
        assert section is not None
        assert section.root is soup.section
        assert section_label(section) == "S"


class TestSectioningRoots:
    def test_sectioning_root_outline_attached_as_sub_root(self) -> None:
        soup, result = _outline(
            "<body><h1>Title</h1><details><h2>Inner</h2></details></body>"
        )
        title = result.outline[0]
        assert section_label(title) == "Title"
        assert title.sub_sections == []
        assert len(title.sub_roots) == 1
        inner = title.sub_roots[0]
        assert section_label(inner) == "Inner"
        assert inner.root is soup.details
        assert inner.parent is title

    def test_table_cells_create_their_own_outline(self) -> None:
        soup, result = _outline("""
<body>
<h1>Main outline</h1>
<h2>A table</h2>
<table><tbody><tr>
 <th>Heading</th>
 <td><h1>Another outline</h1><p id="charlie">Content in other outline</p></td>
</tr></tbody></table>
<h2>A chair</h2>
<p>No chair element in HTML, why?</p>
</body>""")
        assert outline_to_text(result.outline) == "0 - Main outline\n1 - A table\n1 - A chair"
        assert _label_of(soup, result, "charlie") == "Another outline"
        table_section = result.outline[0].sub_sections[0]
        assert [section_label(s) for s in table_section.sub_roots] == ["Another outline"]

    def test_headingless_sectioning_root_is_implied(self) -> None:
        soup, result = _outline("<body><h1>T</h1><blockquote><p>quote</p></blockquote></body>")
        nested = result.outline[0].sub_roots
        assert len(nested) == 1
        assert nested[0].is_implied


class TestHeadingGroupsAndSkippedContent:
    def test_hgroup_children_are_not_separate_headings(self) -> None:
        soup, result = _outline("""
<body>
<hgroup><h1> The morning </h1><h2> 06:00 to 12:00 </h2></hgroup>
<p>We sleep.</p>
<hgroup><h1> The afternoon </h1><h2> 12:00 to 18:00 </h2></hgroup>
<p id="charlie">We study.</p>
<hgroup>
 <h2>Additional Commentary</h2>
 <h3>Because not all this is necessarily true</h3>
 <h6>Ok it's almost certainly not true</h6>
</hgroup>
<p>Yeah we probably play, rather than study.</p>
<hgroup><h1> The evening </h1><h2> 18:00 to 00:00 </h2></hgroup>
<p>We play.</p>
</body>""")
        assert outline_to_text(result.outline) == "\n".join([
            "0 - The morning 06:00 to 12:00",
            "0 - The afternoon 12:00 to 18:00",
            "1 - Additional Commentary Because not all this is necessarily true "
            "Ok it's almost certainly not true",
            "0 - The evening 18:00 to 00:00",
        ])
        assert _label_of(soup, result, "charlie") == "The afternoon 12:00 to 18:00"

    def test_hidden_subtree_is_skipped(self) -> None:
        soup, result = _outline("""
<body>
<h1>Visible</h1>
<div hidden><h1 id="ghost">Hidden</h1><section><h2>Nope</h2></section></div>
<p id="after">After</p>
</body>""")
        assert outline_to_text(result.outline) == "0 - Visible"
        assert _label_of(soup, result, "ghost") == "Visible"
        assert _label_of(soup, result, "after") == "Visible"

    def test_content_of_nested_heading_maps_to_new_section(self) -> None:
        soup, result = _outline(
            "<body><h1>A</h1><h2>B <span id='inside'>x</span></h2></body>"
        )
        assert _label_of(soup, result, "inside") == "B x"

    def test_name_anchors_are_mapped(self) -> None:
        soup, result = _outline('<body><h1>A</h1><a name="legacy">old</a></body>')
        section = result.node_to_section.get(soup.find("a"))
        assert section is not None and section_label(section) == "A"

    def test_elements_without_identifier_are_not_mapped(self) -> None:
        soup, result = _outline("<body><h1>A</h1><p>plain</p></body>")
        assert soup.p not in result.node_to_section
        assert len(result.node_to_section) == 0


class TestOutlineInvariants:
    DOCS = [
        "<body><h1>A</h1><h2>B</h2><h3>C</h3><h2>D</h2></body>",
        "<body><nav><p>x</p></nav><aside><section><p>y</p></section></aside></body>",
        "<body><h3>Low</h3><h1>High</h1><h2>Mid</h2><figure><p>f</p></figure></body>",
        "<body><section><details><h4>d</h4><section></section></details></section></body>",
    ]

    @pytest.mark.parametrize("html", DOCS)
    def test_every_section_has_a_heading(self, html: str) -> None:
        _, result = _outline(html)
        for section in flatten_all_sections(result.outline):
            assert section.heading is not None

    @pytest.mark.parametrize("html", DOCS)
    def test_parent_pointers_match_containment(self, html: str) -> None:
        _, result = _outline(html)
        for section in flatten_all_sections(result.outline):
            for child in section.sub_sections + section.sub_roots:
                assert child.parent is section

    def test_fragment_root_without_body(self) -> None:
        soup, result = _outline("<h1>A</h1><p id=p>x</p>")
        assert outline_to_text(result.outline) == "0 - A"
        assert _label_of(soup, result, "p") == "A"

    def test_hidden_root_gets_an_implied_outline(self) -> None:
        soup, result = _outline("<body hidden><h1 id=a>A</h1><p id=p>x</p></body>")
        assert len(result.outline) == 1
        assert result.outline[0].heading is IMPLIED
        assert result.outline[0].root is soup.body
        assert result.node_to_section.get(soup.find(id="a")) is result.outline[0]
        assert result.node_to_section.get(soup.find(id="p")) is result.outline[0]

    def test_build_does_not_mutate_tree(self) -> None:
        html = "<body><h1>A</h1><section><h2 id=b>B</h2></section></body>"
        soup = BeautifulSoup(html, "html.parser")
        before = str(soup)
        build_outline(soup.body)
        assert str(soup) == before


class TestFlatten:
    def _tree(self) -> list[Section]:
        leaf = Section(heading=IMPLIED)
        nested_root = Section(heading=IMPLIED)
        child = Section(heading=IMPLIED, sub_sections=[leaf])
        top = Section(heading=IMPLIED, sub_sections=[child], sub_roots=[nested_root])
        self.leaf, self.nested_root, self.child, self.top = leaf, nested_root, child, top
        return [top]

    def test_flatten_sections_stays_in_outline(self) -> None:
        flat = flatten_sections(self._tree())
        assert flat == [self.top, self.child, self.leaf]

    def test_flatten_all_sections_crosses_nested_outlines(self) -> None:
        flat = flatten_all_sections(self._tree())
        assert flat == [self.top, self.child, self.leaf, self.nested_root]


class TestMalformedNesting:
    def test_sectioning_root_exit_without_parent_section_raises(self) -> None:
        soup = BeautifulSoup("<div><blockquote></blockquote></div>", "html.parser")
        walker = _OutlineWalker(soup.div)
        # Enter the blockquote without ever entering its outline target.
        walker.enter(soup.blockquote)
        walker.stack.append(soup.div)
        with pytest.raises(OutlineError):
            walker.exit(soup.blockquote)

    def test_heading_climb_past_outline_top_raises(self) -> None:
        soup = BeautifulSoup("<div><h1>A</h1><h2>B</h2><h3>C</h3></div>", "html.parser")
        walker = _OutlineWalker(soup.div)
        walker.enter(soup.div)
        walker.enter(soup.h1)
        # A current section detached from the outline has no parent chain.
        walker.current_section = Section(heading=soup.h3)
        with pytest.raises(OutlineError):
            walker.enter(soup.h2)

    def test_heading_outside_any_outline_raises(self) -> None:
        soup = BeautifulSoup("<div><h1>x</h1></div>", "html.parser")
        walker = _OutlineWalker(soup.div)
        with pytest.raises(OutlineError):
            walker.enter(soup.h1)
