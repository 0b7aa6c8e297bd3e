"""Pluggable crawl policy: link predicates, page predicates, actions, and combinators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

if TYPE_CHECKING:
    from .element import Link
    from .page import Page
    from .region import Region


class CrawlerHooks:
    """Lifecycle hooks called when a policy object is attached to or detached from a crawler."""

    def connected(self, crawler: Any) -> None:
        pass

    def disconnected(self, crawler: Any) -> None:
        pass


class LinkPredicate(CrawlerHooks):
    """Decides whether the crawler should follow a link."""

    def should_visit(self, link: "Link") -> bool:
        raise NotImplementedError


class PagePredicate(CrawlerHooks):
    """Decides whether the crawler's action and `visit()` apply to a page."""

    def should_act_on(self, page: "Page") -> bool:
        raise NotImplementedError


class Action(CrawlerHooks):
    """Something done to every page that passes the page predicate."""

    def visit(self, page: "Page") -> None:
        raise NotImplementedError


class _Combinator(LinkPredicate, PagePredicate):
    """Combinators work on links and pages alike and forward lifecycle hooks."""

    def __init__(self, *predicates: Any) -> None:
        if not predicates:
            raise ValueError(f"{type(self).__name__} needs at least one predicate")
        self.predicates = tuple(predicates)

    def connected(self, crawler: Any) -> None:
        for predicate in self.predicates:
            predicate.connected(crawler)

    def disconnected(self, crawler: Any) -> None:
        for predicate in self.predicates:
            predicate.disconnected(crawler)

    def _results(self, method: str, target: Any) -> Iterable[bool]:
        return (getattr(predicate, method)(target) for predicate in self.predicates)


class AndPredicate(_Combinator):
    """True when every wrapped predicate is true (short-circuits)."""

    def should_visit(self, link: "Link") -> bool:
        return all(self._results("should_visit", link))

    def should_act_on(self, page: "Page") -> bool:
        return all(self._results("should_act_on", page))


class OrPredicate(_Combinator):
    """True when any wrapped predicate is true (short-circuits)."""

    def should_visit(self, link: "Link") -> bool:
        return any(self._results("should_visit", link))

    def should_act_on(self, page: "Page") -> bool:
        return any(self._results("should_act_on", page))


class NotPredicate(_Combinator):
    """Negates one predicate."""

    def __init__(self, predicate: Any) -> None:
        super().__init__(predicate)

    def should_visit(self, link: "Link") -> bool:
        return not self.predicates[0].should_visit(link)

    def should_act_on(self, page: "Page") -> bool:
        return not self.predicates[0].should_act_on(page)


class LabelPredicate(LinkPredicate, PagePredicate):
    """Matches regions carrying any (or all) of the given labels."""

    def __init__(self, labels: str | Iterable[str], *, require_all: bool = False) -> None:
        self.labels = labels.split() if isinstance(labels, str) else list(labels)
        self.require_all = require_all

    def _matches(self, region: "Region") -> bool:
        if self.require_all:
            return region.has_all_labels(self.labels)
        return region.has_any_labels(self.labels)

    def should_visit(self, link: "Link") -> bool:
        return self._matches(link)

    def should_act_on(self, page: "Page") -> bool:
        return self._matches(page)


class CallbackAction(Action):
    """Adapts a plain callable into an `Action`."""

    def __init__(self, callback: Callable[["Page"], None]) -> None:
        self.callback = callback

    def visit(self, page: "Page") -> None:
        self.callback(page)


__all__ = [
    "Action",
    "AndPredicate",
    "CallbackAction",
    "CrawlerHooks",
    "LabelPredicate",
    "LinkPredicate",
    "NotPredicate",
    "OrPredicate",
    "PagePredicate",
]
