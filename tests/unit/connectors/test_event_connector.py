"""
Tests unitaires EventConnector
"""

from unittest.mock import Mock

import pytest

from stream_audit.connectors import (
    ConnectorNotBoundError,
    EventConnector,
    IConnector,
    canonical_event_key,
)


class TestCanonicalEventKey:
    @pytest.mark.parametrize(
        "event, expected",
        [
            ("save_post", "save_post"),
            ("wp-login", "wp_login"),
            ("Transition-Post.Status", "transition_post_status"),
            ("user--register", "user_register"),
            (" trimmed ", "trimmed"),
        ],
    )
    def test_canonical_key(self, event, expected):
        assert canonical_event_key(event) == expected


class TestEventConnectorDispatch:
    def test_implements_interface(self):
        assert isinstance(EventConnector("posts"), IConnector)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            EventConnector(" ")

    def test_routes_to_handler_with_args(self):
        handler = Mock(return_value="handled")
        connector = EventConnector("posts", handlers={"save_post": handler})

        result = connector.dispatch("save_post", 12, "Hello")

        assert result == "handled"
        handler.assert_called_once_with(connector, 12, "Hello")

    def test_separator_variants_share_handler(self):
        """Plusieurs noms bruts routés vers le même handler."""
        handler = Mock()
        connector = EventConnector("users", handlers={"wp_login": handler})

        connector.dispatch("wp-login", "bob")
        connector.dispatch("WP.Login", "alice")

        assert handler.call_count == 2

    def test_unknown_event_is_noop(self):
        """Aucun handler: ignoré silencieusement."""
        connector = EventConnector("posts", handlers={"save_post": Mock()}, events=["delete_post"])

        assert connector.dispatch("delete_post", 12) is None

    def test_registered_events(self):
        connector = EventConnector(
            "posts", handlers={"save_post": Mock(), "delete-post": Mock()}, events=["trash_post", "save_post"]
        )

        assert connector.registered_events() == ["save_post", "delete-post", "trash_post"]

    def test_on_decorator(self):
        connector = EventConnector("comments")

        @connector.on("comment_post", "edit_comment")
        def handler(conn, comment_id):
            return comment_id * 2

        assert connector.dispatch("edit_comment", 21) == 42
        assert connector.registered_events() == ["comment_post", "edit_comment"]
        assert connector.handler_for("comment-post") is handler

    def test_add_handler_rejects_empty_event(self):
        with pytest.raises(ValueError):
            EventConnector("posts").add_handler("", Mock())

    def test_dispatch_emits_debug_entry(self, debug_logger):
        connector = EventConnector("posts", handlers={"save_post": Mock()}, logger=debug_logger)

        connector.dispatch("save-post")

        entry = debug_logger.get_entries()[-1]
        assert entry.extra == {"event": "save-post", "handler": "save_post"}


class TestEventConnectorActionLinks:
    def test_default_returns_copy(self):
        connector = EventConnector("posts")
        links = {"View": "/posts/1"}

        result = connector.action_links(links, record=Mock())

        assert result == links
        assert result is not links

    def test_link_builder_augments_without_mutation(self):
        connector = EventConnector(
            "posts", link_builder=lambda record: {"Diff": f"/revisions/{record['object_id']}"}
        )
        links = {"View": "/posts/1"}

        result = connector.action_links(links, {"object_id": 1})

        assert result == {"View": "/posts/1", "Diff": "/revisions/1"}
        assert links == {"View": "/posts/1"}


class TestEventConnectorLogging:
    def test_log_requires_dispatcher(self):
        with pytest.raises(ConnectorNotBoundError):
            EventConnector("posts").log("msg", {}, 1, {"posts": "updated"})

    def test_delayed_log_requires_dispatcher(self):
        with pytest.raises(ConnectorNotBoundError):
            EventConnector("posts").delayed_log("h", "msg", {}, 1, {"posts": "updated"})

    def test_log_delegates_with_connector_name(self):
        dispatcher = Mock()
        dispatcher.log.return_value = 7
        connector = EventConnector("posts")
        connector.bind(dispatcher)

        assert connector.log("msg", {"a": 1}, 12, {"posts": "updated"}, 3) == 7
        dispatcher.log.assert_called_once_with("posts", "msg", {"a": 1}, 12, {"posts": "updated"}, 3)

    def test_delayed_log_delegates_with_connector_name(self):
        dispatcher = Mock()
        connector = EventConnector("posts")
        connector.bind(dispatcher)

        connector.delayed_log("post-12", "msg", {}, 12, {"posts": "updated"})

        dispatcher.delayed_log.assert_called_once_with("posts", "post-12", "msg", {}, 12, {"posts": "updated"}, None)
        assert connector.bound is True
