"""
Tests for trigger matching and thread reconstruction.
"""

import pytest


class TestTriggerMatcher:
    def test_case_insensitive(self):
        from responder.sync.trigger import matches
        assert matches("Hey @AI what do you think?", "@ai")
        assert matches("hey @ai", "@AI")

    def test_substring_of_word_matches(self):
        from responder.sync.trigger import matches
        assert matches("email@ai.example.com", "@ai")

    def test_absent_trigger(self):
        from responder.sync.trigger import matches
        assert not matches("Looks good to me", "@ai")
        assert not matches("", "@ai")
        assert not matches(None, "@ai")


class TestFindRoot:
    def test_root_returns_itself(self, make_comment):
        from responder.sync.threads import find_root
        root = make_comment("A")
        assert find_root([root], root) is root

    def test_walks_to_root(self, make_comment):
        from responder.sync.threads import find_root
        a = make_comment("A")
        b = make_comment("B", parent_id="A")
        c = make_comment("C", parent_id="B")
        assert find_root([c, b, a], c).id == "A"

    def test_missing_parent_stops_early(self, make_comment):
        from responder.sync.threads import find_root
        b = make_comment("B", parent_id="GONE")
        c = make_comment("C", parent_id="B")
        assert find_root([b, c], c).id == "B"

    def test_cycle_terminates(self, make_comment):
        from responder.sync.threads import find_root
        x = make_comment("X", parent_id="Y")
        y = make_comment("Y", parent_id="X")
        root = find_root([x, y], x)
        assert root.id in {"X", "Y"}

    def test_self_reference_terminates(self, make_comment):
        from responder.sync.threads import find_root
        x = make_comment("X", parent_id="X")
        assert find_root([x], x).id == "X"


class TestCollectThread:
    def test_deep_replies_in_any_order(self, make_comment):
        from responder.sync.threads import collect_thread
        a = make_comment("A")
        b = make_comment("B", parent_id="A")
        c = make_comment("C", parent_id="B")
        d = make_comment("D", parent_id="C")
        other = make_comment("Z")
        # Deepest reply first, so a single pass would miss it
        thread = collect_thread([d, c, other, b, a], a)
        assert {m.id for m in thread} == {"A", "B", "C", "D"}

    def test_root_missing_from_list_is_included(self, make_comment):
        from responder.sync.threads import collect_thread
        a = make_comment("A")
        b = make_comment("B", parent_id="A")
        thread = collect_thread([b], a)
        assert [m.id for m in thread] == ["A", "B"]


class TestBuildContext:
    def test_orders_by_created_at_and_excludes_target(self, make_comment):
        from responder.sync.threads import build_context
        a = make_comment("A", "@ai review this", minutes=0, author="ann")
        b = make_comment("B", "@ai and the colors?", parent_id="A", minutes=10, author="ann")
        c = make_comment("C", "Use more contrast.", parent_id="A", minutes=5, author="ann")
        target = make_comment("D", "@ai thanks, anything else?", parent_id="A", minutes=20)

        messages = build_context([b, target, a, c], target, "@ai")

        assert [m.text for m in messages] == [
            "@ai review this",
            "Use more contrast.",
            "@ai and the colors?",
        ]
        assert [m.is_generated for m in messages] == [False, True, False]

    def test_nested_chain_orders_by_time_not_depth(self, make_comment):
        from responder.sync.threads import build_context
        a = make_comment("A", "@ai root", minutes=0)
        b = make_comment("B", "@ai b", parent_id="A", minutes=2)
        c = make_comment("C", "@ai c", parent_id="B", minutes=1)
        d = make_comment("D", "@ai d", parent_id="C", minutes=3)

        messages = build_context([d, c, b, a], d, "@ai")
        assert [m.text for m in messages] == ["@ai root", "@ai c", "@ai b"]

    def test_ties_keep_fetch_order(self, make_comment):
        from responder.sync.threads import build_context
        a = make_comment("A", "@ai root", minutes=0)
        b = make_comment("B", "first", parent_id="A", minutes=1)
        c = make_comment("C", "second", parent_id="A", minutes=1)
        target = make_comment("T", "@ai go", parent_id="A", minutes=2)

        messages = build_context([a, b, c, target], target, "@ai")
        assert [m.text for m in messages] == ["@ai root", "first", "second"]

    def test_root_target_without_replies_is_empty(self, make_comment):
        from responder.sync.threads import build_context
        a = make_comment("A", "@ai hi")
        assert build_context([a], a, "@ai") == []

    def test_other_threads_ignored(self, make_comment):
        from responder.sync.threads import build_context
        a = make_comment("A", "@ai one")
        z = make_comment("Z", "unrelated")
        z1 = make_comment("Z1", "reply", parent_id="Z")
        target = make_comment("T", "@ai again", parent_id="A", minutes=3)

        messages = build_context([a, z, z1, target], target, "@ai")
        assert [m.text for m in messages] == ["@ai one"]


class TestSelectComments:
    def test_filters_processed_resolved_and_non_triggering(self, make_comment, ledger):
        from responder.sync.selector import select_comments
        fresh = make_comment("1", "@ai help")
        done = make_comment("2", "@ai help again")
        resolved = make_comment("3", "@ai old", resolved=True)
        plain = make_comment("4", "nice work")
        ledger.mark_processed("2")

        selected = select_comments([fresh, done, resolved, plain], ledger, "@ai")
        assert [c.id for c in selected] == ["1"]

    def test_replies_can_trigger(self, make_comment, ledger):
        from responder.sync.selector import select_comments
        root = make_comment("1", "Thoughts on spacing")
        reply = make_comment("2", "@AI can you weigh in?", parent_id="1")

        selected = select_comments([root, reply], ledger, "@ai")
        assert [c.id for c in selected] == ["2"]

    @pytest.mark.parametrize("trigger", ["@ai", "@claude"])
    def test_uses_configured_trigger(self, make_comment, ledger, trigger):
        from responder.sync.selector import select_comments
        comment = make_comment("1", f"{trigger} please review")
        assert len(select_comments([comment], ledger, trigger)) == 1
