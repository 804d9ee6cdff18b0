"""
Tests for hookrelay.normalizer and the event handlers

Covers:
- Every bundled sample renders without raising
- Every string in a record respects its cap, even for oversized payloads
- Push / tag / issue / merge request / note / wiki rendering details
- Placeholder and unknown event types
- Error records for malformed payloads and non-JSON bodies
"""

import json
from dataclasses import replace

import pytest

from hookrelay.commands import SAMPLES, load_sample
from hookrelay.config import COLORS
from hookrelay.handlers import get_handler, list_handlers, supported_events
from hookrelay.handlers.generic import UnknownEventHandler
from hookrelay.models import Caps, NotificationRecord


def assert_within_caps(record: NotificationRecord, caps: Caps):
    assert len(record.title) <= caps.title
    assert len(record.description) <= caps.description
    assert len(record.username) <= caps.author
    assert len(record.avatar_url) <= caps.url
    assert len(record.permalink) <= caps.url
    assert len(record.footer.text) <= caps.footer
    for f in record.fields:
        assert len(f.name) <= caps.field_name
        assert len(f.value) <= caps.field_value


def sample(key):
    event_type, body = load_sample(key)
    return event_type, json.loads(body)


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════


class TestRegistry:

    def test_known_events_registered(self):
        events = supported_events()
        for name in ["Push Hook", "Tag Push Hook", "Issue Hook", "Note Hook",
                     "Merge Request Hook", "Wiki Page Hook", "Pipeline Hook", "Build Hook"]:
            assert name in events

    def test_unknown_falls_back(self):
        assert isinstance(get_handler("Something Else"), UnknownEventHandler)
        assert isinstance(get_handler(""), UnknownEventHandler)

    def test_list_handlers_names_classes(self):
        assert list_handlers()["Push Hook"] == "PushHandler"

    def test_config_command_lists_events(self, capsys):
        from hookrelay.__main__ import cmd_config

        cmd_config([])
        out = capsys.readouterr().out
        assert ", ".join(supported_events()) in out
        assert "Push Hook" in out


# ═══════════════════════════════════════════════════════════════════════════
# Samples and caps
# ═══════════════════════════════════════════════════════════════════════════


class TestSamples:

    @pytest.mark.parametrize("key", sorted(SAMPLES))
    def test_sample_renders_within_caps(self, normalizer, ctx, key):
        event_type, payload = sample(key)
        record = normalizer.normalize(event_type, payload)
        assert isinstance(record, NotificationRecord)
        assert record.title
        assert_within_caps(record, ctx.caps)

    @pytest.mark.parametrize("key", ["issue", "merge", "push", "tag", "wiki",
                                     "commit_comment", "issue_comment", "merge_comment", "snippet"])
    def test_implemented_samples_are_not_errors(self, normalizer, key):
        event_type, payload = sample(key)
        record = normalizer.normalize(event_type, payload)
        assert not record.title.startswith("Error")

    def test_oversized_payload_is_capped(self, normalizer, ctx):
        payload = {
            "user": {"username": "u" * 5000, "avatar_url": "https://a/" + "p" * 5000},
            "project": {"path_with_namespace": "g" * 5000},
            "object_attributes": {
                "action": "open",
                "iid": 1,
                "title": "t" * 5000,
                "description": "d" * 5000,
                "url": "https://x/" + "q" * 5000,
            },
            "labels": [{"title": "l" * 3000}],
            "assignees": [{"username": "a" * 3000}],
        }
        record = normalizer.normalize("Issue Hook", payload)
        assert_within_caps(record, ctx.caps)
        assert record.title.endswith("...")

    def test_tiny_caps_respected(self, ctx, normalizer):
        small = replace(ctx, caps=Caps(title=10, description=10, field_name=10,
                                       field_value=10, snippet=10, commit_message=10,
                                       author=10, footer=10, url=20))
        normalizer.ctx = small
        for key in SAMPLES:
            event_type, payload = sample(key)
            assert_within_caps(normalizer.normalize(event_type, payload), small.caps)


# ═══════════════════════════════════════════════════════════════════════════
# Per-event rendering
# ═══════════════════════════════════════════════════════════════════════════


class TestPush:

    def test_single_commit(self, normalizer):
        payload = {
            "ref": "refs/heads/main",
            "user_username": "alice",
            "project": {"name": "repo", "web_url": "https://g/repo"},
            "commits": [{"id": "a" * 40, "message": "fix bug", "added": ["x"],
                         "modified": [], "removed": []}],
        }
        record = normalizer.normalize("Push Hook", payload)
        assert "1 new commit" in record.title
        assert "fix bug" in record.description
        assert "1 additions" in record.description
        assert record.username == "alice"
        assert record.color == COLORS["commit"]
        assert ("Branch", "main") in [(f.name, f.value) for f in record.fields]

    def test_multiple_commits_listed_with_links(self, normalizer):
        _, payload = sample("push")
        record = normalizer.normalize("Push Hook", payload)
        assert "4 new commits" in record.title
        assert record.title.startswith("[mike/diaspora] ")
        assert record.permalink == "http://example.com/mike/diaspora"

    def test_no_commits_reports_to_debug_sink(self, ctx, normalizer):
        captured = []
        normalizer.ctx = replace(ctx, debug_sink=lambda label, data: captured.append(label))
        record = normalizer.normalize("Push Hook", {"ref": "refs/heads/dev", "commits": []})
        assert "0 new commits" in record.title
        assert "No new commits pushed to dev" == record.description
        assert captured == ["Push Hook without commits"]

    def test_commit_message_capped_in_list(self, normalizer, ctx):
        commits = [{"id": str(i) * 40, "message": "m" * 500} for i in range(3)]
        record = normalizer.normalize("Push Hook", {"commits": commits})
        assert "m" * (ctx.caps.commit_message + 1) not in record.description

    def test_loosely_typed_values_still_render(self, normalizer):
        payload = {
            "ref": "refs/heads/main",
            "user_username": "alice",
            "user_avatar": {"url": "/a.png"},
            "project": {"name": "repo", "web_url": {"href": "https://g/repo"}},
            "commits": [{"id": 1234567890, "message": 42, "url": ["x"]},
                        {"id": "b" * 40, "message": None, "url": 3}],
        }
        record = normalizer.normalize("Push Hook", payload)
        assert not record.title.startswith("Error")
        assert "2 new commits" in record.title
        assert "12345678 42" in record.description
        assert record.avatar_url == ""
        assert record.permalink == ""


class TestTagPush:

    def test_new_tag(self, normalizer):
        _, payload = sample("tag")
        record = normalizer.normalize("Tag Push Hook", payload)
        assert "Tag pushed: v1.0.0" in record.title
        fields = {f.name: f.value for f in record.fields}
        assert fields["Previous Commit"] == "(none)"
        assert "82b3d5ae" in fields["Current Commit"]
        assert record.color == COLORS["release"]

    def test_removed_tag(self, normalizer):
        payload = {"ref": "refs/tags/v2", "before": "b" * 40, "after": "0" * 40}
        record = normalizer.normalize("Tag Push Hook", payload)
        assert "Tag removed: v2" in record.title


class TestIssuesAndMergeRequests:

    def test_issue_opened(self, normalizer):
        _, payload = sample("issue")
        record = normalizer.normalize("Issue Hook", payload)
        assert "Issue Opened: #23" in record.title
        assert record.color == COLORS["issue_opened"]
        names = [f.name for f in record.fields]
        assert "Assigned To:" in names
        assert "Labeled As:" in names

    def test_issue_closed_and_other_actions(self, normalizer):
        _, payload = sample("issue")
        payload["object_attributes"]["action"] = "close"
        assert "Issue Closed" in normalizer.normalize("Issue Hook", payload).title
        payload["object_attributes"]["action"] = "reopen"
        record = normalizer.normalize("Issue Hook", payload)
        assert "Issue Updated" in record.title
        assert record.color == COLORS["issue_comment"]

    def test_merge_request_opened(self, normalizer):
        _, payload = sample("merge")
        record = normalizer.normalize("Merge Request Hook", payload)
        assert "Merge Request Opened: #1 MS-Viewport" in record.title
        names = [f.name for f in record.fields]
        assert names[:2] == ["Merge From", "Merge Into"]

    def test_merge_request_merged(self, normalizer):
        _, payload = sample("merge")
        payload["object_attributes"]["action"] = "merge"
        record = normalizer.normalize("Merge Request Hook", payload)
        assert "Merge Request Merged" in record.title
        assert record.color == COLORS["merge_request_closed"]


class TestNotes:

    def test_commit_comment(self, normalizer):
        _, payload = sample("commit_comment")
        record = normalizer.normalize("Note Hook", payload)
        assert "New Comment on Commit" in record.title
        fields = {f.name: f.value for f in record.fields}
        assert fields["Comment"].startswith("This is a commit comment")
        assert "Commit Message" in fields

    def test_issue_comment(self, normalizer):
        _, payload = sample("issue_comment")
        record = normalizer.normalize("Note Hook", payload)
        assert "New Comment on Issue #17 test" in record.title
        assert record.color == COLORS["issue_comment"]

    def test_merge_request_comment(self, normalizer):
        _, payload = sample("merge_comment")
        record = normalizer.normalize("Note Hook", payload)
        assert "New Comment on Merge Request #1" in record.title

    def test_snippet_fence_survives_truncation(self, normalizer):
        _, payload = sample("snippet")
        payload["snippet"]["content"] = "x" * 5000
        record = normalizer.normalize("Note Hook", payload)
        snippet = {f.name: f.value for f in record.fields}["Snippet"]
        assert snippet.endswith("```")

    def test_unknown_noteable_type_keeps_comment(self, normalizer):
        payload = {"object_attributes": {"note": "hi", "noteable_type": "Epic"}}
        record = normalizer.normalize("Note Hook", payload)
        assert record.title == "New Comment"
        assert [f.name for f in record.fields] == ["Comment"]


class TestOtherEvents:

    def test_wiki(self, normalizer):
        _, payload = sample("wiki")
        record = normalizer.normalize("Wiki Page Hook", payload)
        assert "Wiki Action: create" in record.title
        assert "Awesome" in [f.value for f in record.fields]

    @pytest.mark.parametrize("key,event_type", [("pipeline", "Pipeline Hook"), ("build", "Build Hook")])
    def test_placeholder(self, normalizer, key, event_type):
        _, payload = sample(key)
        record = normalizer.normalize(event_type, payload)
        assert record.description == f"**{event_type}** This feature is not yet implemented"

    def test_unknown_event_type(self, normalizer):
        _, payload = sample("unrelated")
        record = normalizer.normalize("Unrelated", payload)
        assert record.title == "Type: Unrelated"
        assert "Hello World!" in record.fields[0].value

    def test_missing_event_type(self, normalizer):
        record = normalizer.normalize(None, {"a": 1})
        assert record.title == "Type: (none)"

    def test_unknown_event_accepts_non_object(self, normalizer):
        record = normalizer.normalize("Whatever", [1, 2, 3])
        assert record.title == "Type: Whatever"


# ═══════════════════════════════════════════════════════════════════════════
# Error records
# ═══════════════════════════════════════════════════════════════════════════


class TestErrorRecords:

    def test_missing_object_attributes(self, normalizer):
        event_type, body = load_sample("fake_error")
        record = normalizer.normalize(event_type, json.loads(body), raw=body)
        assert record.title == "Error Reading HTTP Request Data: Issue Hook"
        assert record.color == COLORS["error"]
        assert "object_attributes" in record.description
        assert record.fields[0].name == "Raw Body"

    def test_non_object_payload_for_known_event(self, normalizer):
        record = normalizer.normalize("Push Hook", "just a string")
        assert record.title.startswith("Error Reading HTTP Request Data")
        assert "expected a JSON object" in record.description

    def test_parse_error_record(self, normalizer, ctx):
        record = normalizer.parse_error_record(
            "Push Hook", "application/json", ValueError("Expecting value"), b"not json" * 100
        )
        assert record.title == "Error Parsing HTTP Request Data: Push Hook"
        assert "application/json" in record.description
        assert len(record.fields[0].value) <= ctx.caps.snippet

    def test_status_record(self, normalizer):
        record = normalizer.status_record("recovered", "back")
        assert record.color == COLORS["status"]
        assert record.to_embed()["title"] == "recovered"
