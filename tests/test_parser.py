from notegraph.vault.parser import extract_inline_links, extract_links, extract_title, extract_wikilinks


def test_wikilinks_in_text_order_with_alias_and_heading_dropped() -> None:
    content = "Start [[Alpha]], then [[Beta|the second]] and [[Gamma#Usage]] or [[Delta#Part|d]]."
    assert extract_wikilinks(content) == ["Alpha", "Beta", "Gamma", "Delta"]


def test_wikilink_targets_are_trimmed_and_empty_ones_skipped() -> None:
    assert extract_wikilinks("[[  Spaced Note  ]] [[ ]] [[]]") == ["Spaced Note"]


def test_escaped_and_unclosed_wikilinks_are_ignored() -> None:
    content = r"Literal \[[NotALink]] and [[Open but never closed"
    assert extract_wikilinks(content) == []


def test_wikilink_does_not_span_lines() -> None:
    assert extract_wikilinks("[[Broken\nLink]]") == []


def test_inline_links_use_base_name_without_extension() -> None:
    content = "[one](One.md) [two](notes/sub/Two.md) [web](https://example.com) [img](pic.png)"
    assert extract_inline_links(content) == ["One", "Two"]


def test_inline_links_respect_extension() -> None:
    content = "[a](A.md) [b](B.markdown)"
    assert extract_inline_links(content, ".markdown") == ["B"]


def test_inline_link_with_spaces_in_filename() -> None:
    assert extract_inline_links("[Topic](../Topic 3.md)") == ["Topic 3"]


def test_extract_links_puts_wikilinks_before_inline_links() -> None:
    content = "[first in text](Zeta.md) then [[Eta]]"
    assert extract_links(content, "Source") == ["Eta", "Zeta"]


def test_extract_links_drops_self_links_and_keeps_duplicates() -> None:
    content = "[[Self]] [[Other]] [[Other]] [me](Self.md)"
    assert extract_links(content, "Self") == ["Other", "Other"]


def test_extract_links_is_case_sensitive() -> None:
    assert extract_links("[[note]] [[Note]]", "Note") == ["note"]


def test_extract_title_uses_first_h1() -> None:
    assert extract_title("intro\n## Sub\n# Main Title \n# Second") == "Main Title"
    assert extract_title("no heading") is None


def test_escaped_inline_link_is_ignored() -> None:
    assert extract_inline_links(r"\[label](X.md) and [kept](Y.md)") == ["Y"]
