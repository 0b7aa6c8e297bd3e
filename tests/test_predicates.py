"""Tests for crawler.predicates module."""

from __future__ import annotations

import pytest

from crawlkit.crawler import (
    AndPredicate,
    CallbackAction,
    LabelPredicate,
    Link,
    LinkPredicate,
    NotPredicate,
    OrPredicate,
    Page,
)


class Fixed(LinkPredicate):
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.calls = 0

    def should_visit(self, link) -> bool:
        self.calls += 1
        return self.answer


def labelled(*labels: str) -> Link:
    link = Link("http://example.com/")
    for label in labels:
        link.set_label(label)
    return link


class TestCombinators:
    def test_and_short_circuits(self):
        no, yes = Fixed(False), Fixed(True)
        assert not AndPredicate(no, yes).should_visit(labelled())
        assert (no.calls, yes.calls) == (1, 0)

    def test_or_short_circuits(self):
        yes, no = Fixed(True), Fixed(False)
        assert OrPredicate(yes, no).should_visit(labelled())
        assert (yes.calls, no.calls) == (1, 0)

    def test_not(self):
        assert NotPredicate(Fixed(False)).should_visit(labelled())
        assert not NotPredicate(Fixed(True)).should_visit(labelled())

    def test_combinator_needs_predicates(self):
        with pytest.raises(ValueError, match="at least one"):
            AndPredicate()


class TestLabelPredicate:
    def test_any_label(self):
        predicate = LabelPredicate("local image")
        assert predicate.should_visit(labelled("image"))
        assert not predicate.should_visit(labelled("remote"))

    def test_all_labels(self):
        predicate = LabelPredicate(["local", "image"], require_all=True)
        assert predicate.should_visit(labelled("local", "image", "sibling"))
        assert not predicate.should_visit(labelled("local"))

    def test_pages(self):
        page = Page.from_html("http://example.com/", "<p>x")
        page.set_label("root")
        assert LabelPredicate("root").should_act_on(page)
        assert not NotPredicate(LabelPredicate("root")).should_act_on(page)


class TestCallbackAction:
    def test_calls_function(self):
        seen = []
        page = Page.from_html("http://example.com/", "<p>x")
        CallbackAction(seen.append).visit(page)
        assert seen == [page]
