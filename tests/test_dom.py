"""Tests for the headless page model and the virtual-clock scheduler."""

import pytest

from portfolio.dom import Event, IntersectionObserver, Page, add_class, classes, remove_class, set_style, style
from portfolio.scheduler import FRAME_MS, Scheduler

NESTED_HTML = """
<html><body>
  <section id="outer" data-gallery='[]'>
    <div id="inner" class="card wide"><span id="leaf">x</span></div>
  </section>
  <img src="same.jpg"><img src="same.jpg">
</body></html>
"""


class TestScheduler:
    def test_runs_callbacks_in_deadline_order(self):
        scheduler = Scheduler()
        calls = []
        scheduler.call_later(50, lambda: calls.append("fade"))
        scheduler.call_later(400, lambda: calls.append("hide"))
        scheduler.request_frame(lambda: calls.append("frame"))

        scheduler.advance(FRAME_MS)
        assert calls == ["frame"]

        scheduler.advance(1000)
        assert calls == ["frame", "fade", "hide"]
        assert scheduler.now == FRAME_MS + 1000

    def test_same_deadline_keeps_scheduling_order(self):
        scheduler = Scheduler()
        calls = []
        for name in "abc":
            scheduler.call_later(10, lambda name=name: calls.append(name))

        scheduler.advance(10)

        assert calls == ["a", "b", "c"]

    def test_cancel(self):
        scheduler = Scheduler()
        calls = []
        timer = scheduler.call_later(10, lambda: calls.append(1))

        timer.cancel()
        scheduler.advance(100)

        assert calls == []
        assert scheduler.pending == 0

    def test_call_every_repeats(self):
        scheduler = Scheduler()
        ticks = []
        scheduler.call_every(3000, lambda: ticks.append(scheduler.now))

        scheduler.advance(9500)

        assert ticks == [3000, 6000, 9000]

    def test_call_every_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            Scheduler().call_every(0, lambda: None)

    def test_callbacks_scheduled_while_running_are_honoured(self):
        scheduler = Scheduler()
        calls = []
        scheduler.call_later(10, lambda: scheduler.call_later(10, lambda: calls.append(scheduler.now)))

        scheduler.advance(25)

        assert calls == [20]


class TestClassesAndStyle:
    def test_add_and_remove_class(self):
        tag = Page(NESTED_HTML).select_one("#inner")

        add_class(tag, "active", "card")
        assert classes(tag) == ["card", "wide", "active"]

        remove_class(tag, "card", "wide", "active")
        assert not tag.has_attr("class")

    def test_style_merge_and_removal(self):
        tag = Page(NESTED_HTML).select_one("#leaf")

        set_style(tag, {"display": "block", "opacity": "0"})
        assert style(tag) == {"display": "block", "opacity": "0"}

        set_style(tag, {"opacity": ""})
        assert tag["style"] == "display: block"

        set_style(tag, {"display": None})
        assert not tag.has_attr("style")


class TestEvents:
    def test_click_bubbles_to_document(self):
        page = Page(NESTED_HTML)
        seen = []
        page.on("click", lambda e: seen.append(("inner", e.current_target["id"])), target=page.select_one("#inner"))
        page.on("click", lambda e: seen.append(("document", e.current_target)))

        page.click(page.select_one("#leaf"))

        assert seen == [("inner", "inner"), ("document", None)]

    def test_mouseenter_does_not_bubble(self):
        page = Page(NESTED_HTML)
        seen = []
        page.on("mouseenter", seen.append, target=page.select_one("#inner"))

        page.hover(page.select_one("#leaf"))

        assert seen == []

    def test_once_listener(self):
        page = Page(NESTED_HTML)
        seen = []
        leaf = page.select_one("#leaf")
        page.on("mouseenter", seen.append, target=leaf, once=True)

        page.hover(leaf)
        page.hover(leaf)

        assert len(seen) == 1

    def test_listeners_are_bound_to_identity_not_markup(self):
        page = Page(NESTED_HTML)
        seen = []
        first, second = page.select("img")
        page.on("click", lambda e: seen.append(e.target), target=first)

        assert first == second
        page.dispatch(Event("click", second))

        assert seen == []

    def test_closest_includes_element_itself(self):
        page = Page(NESTED_HTML)
        leaf = page.select_one("#leaf")

        assert page.closest(leaf, "[data-gallery]") is page.select_one("#outer")
        assert page.closest(leaf, "span") is leaf
        assert page.closest(leaf, ".missing") is None

    def test_remove_forgets_listeners(self):
        page = Page(NESTED_HTML)
        inner = page.select_one("#inner")
        page.on("click", lambda e: None, target=inner.span)

        page.remove(inner)

        assert page.select_one("#inner") is None
        assert not any(key[0] is not None for key in page._listeners)

    def test_page_without_body_gets_one(self):
        page = Page("<p>fragment</p>")

        assert page.body is not None
        assert page.head is not None


class TestIntersectionObserver:
    def test_reports_threshold_crossings_only(self):
        page = Page(NESTED_HTML)
        leaf = page.select_one("#leaf")
        entries = []
        observer = IntersectionObserver(page, lambda found, obs: entries.extend(found), threshold=0.25)
        observer.observe(leaf)

        for ratio in (0.5, 0.9, 0.1, 0.05, 0.3):
            page.report_visibility(leaf, ratio)

        assert [entry.is_intersecting for entry in entries] == [True, False, True]

    def test_unobserved_elements_are_ignored(self):
        page = Page(NESTED_HTML)
        leaf = page.select_one("#leaf")
        entries = []
        observer = IntersectionObserver(page, lambda found, obs: entries.extend(found))
        observer.observe(leaf)
        observer.unobserve(leaf)

        page.report_visibility(leaf, 1.0)
        observer.disconnect()

        assert entries == []
