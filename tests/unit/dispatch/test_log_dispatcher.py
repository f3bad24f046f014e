"""
Tests unitaires LogDispatcher

Couvre:
    - Filtrage contexte/action, ordre conservé
    - Demande entièrement exclue: aucun appel au puits
    - Validation différée: dernier écrivain gagne, une seule passe
    - Erreurs du puits propagées
"""

from unittest.mock import Mock

import pytest

from stream_audit.core import ExclusionSettings, SettingsConfigSource
from stream_audit.dispatch import (
    ILogDispatcher,
    InMemoryLogSink,
    LogDispatcher,
    NoActiveUnitOfWorkError,
    UnitOfWorkManager,
)
from stream_audit.logging import LogLevel
from stream_audit.policy import ExclusionPolicy, Identity


# ══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def excluding_source():
    return SettingsConfigSource(
        ExclusionSettings(contexts=["comments"], actions=["deleted"], connectors=["widgets"])
    )


@pytest.fixture
def filtering_dispatcher(excluding_source, identity_provider, debug_logger):
    """Dispatcher avec exclusions et puits mocké."""
    sink = Mock()
    sink.log.return_value = 101
    manager = UnitOfWorkManager(excluding_source)
    policy = ExclusionPolicy(excluding_source, identity_provider)
    dispatcher = LogDispatcher(policy, sink, identity_provider, manager, logger=debug_logger)
    return dispatcher, sink, manager


# ══════════════════════════════════════════════════════════════════════════════
# TESTS FILTRAGE
# ══════════════════════════════════════════════════════════════════════════════


class TestLogFiltering:
    def test_implements_interface(self, dispatcher):
        assert isinstance(dispatcher, ILogDispatcher)

    def test_forwards_surviving_contexts(self, filtering_dispatcher):
        """Seules les paires survivantes sont transmises, dans l'ordre."""
        dispatcher, sink, _ = filtering_dispatcher

        record_id = dispatcher.log(
            "posts",
            "Updated %(title)s",
            {"title": "Hello"},
            12,
            {"comments": "updated", "posts": "updated", "pages": "created", "media": "deleted"},
            user_id=3,
        )

        assert record_id == 101
        sink.log.assert_called_once_with(
            "posts",
            "Updated %(title)s",
            {"title": "Hello"},
            12,
            {"posts": "updated", "pages": "created"},
            3,
        )
        forwarded = sink.log.call_args[0][4]
        assert list(forwarded) == ["posts", "pages"]

    def test_fully_excluded_request_dropped(self, filtering_dispatcher, debug_logger):
        """Toutes les paires exclues: aucun appel au puits."""
        dispatcher, sink, _ = filtering_dispatcher

        result = dispatcher.log("posts", "msg", {}, 1, {"comments": "updated", "posts": "deleted"})

        assert result is None
        sink.log.assert_not_called()
        assert any("All contexts excluded" in e.message for e in debug_logger.get_entries())

    def test_empty_context_map_dropped(self, filtering_dispatcher):
        dispatcher, sink, _ = filtering_dispatcher

        assert dispatcher.log("posts", "msg", {}, 1, {}) is None
        sink.log.assert_not_called()

    def test_excluded_connector_dropped(self, filtering_dispatcher):
        dispatcher, sink, _ = filtering_dispatcher

        assert dispatcher.log("widgets", "msg", {}, 1, {"widgets": "updated"}) is None
        sink.log.assert_not_called()

    def test_input_contexts_not_mutated(self, filtering_dispatcher):
        dispatcher, _, _ = filtering_dispatcher
        contexts = {"comments": "updated", "posts": "updated"}

        dispatcher.log("posts", "msg", {}, 1, contexts)

        assert contexts == {"comments": "updated", "posts": "updated"}

    def test_filter_contexts(self, filtering_dispatcher):
        dispatcher, _, _ = filtering_dispatcher

        assert dispatcher.filter_contexts({"comments": "x", "posts": "deleted", "pages": "y"}) == {"pages": "y"}

    def test_none_args_become_empty(self, filtering_dispatcher):
        dispatcher, sink, _ = filtering_dispatcher

        dispatcher.log("posts", "msg", None, None, {"posts": "updated"}, user_id=1)

        assert sink.log.call_args[0][2] == {}


# ══════════════════════════════════════════════════════════════════════════════
# TESTS ACTEUR
# ══════════════════════════════════════════════════════════════════════════════


class TestUserResolution:
    def test_defaults_to_current_actor(self, filtering_dispatcher, identity_provider):
        dispatcher, sink, _ = filtering_dispatcher

        with identity_provider.acting_as(Identity(user_id=9, roles=("author",))):
            dispatcher.log("posts", "msg", {}, 1, {"posts": "updated"})

        assert sink.log.call_args[0][5] == 9

    def test_anonymous_actor_is_zero(self, filtering_dispatcher):
        dispatcher, sink, _ = filtering_dispatcher

        dispatcher.log("posts", "msg", {}, 1, {"posts": "updated"})

        assert sink.log.call_args[0][5] == 0

    def test_explicit_user_wins(self, filtering_dispatcher, identity_provider):
        dispatcher, sink, _ = filtering_dispatcher

        with identity_provider.acting_as(Identity(user_id=9)):
            dispatcher.log("posts", "msg", {}, 1, {"posts": "updated"}, user_id=4)

        assert sink.log.call_args[0][5] == 4


# ══════════════════════════════════════════════════════════════════════════════
# TESTS ERREURS PUITS
# ══════════════════════════════════════════════════════════════════════════════


class TestSinkFailure:
    def test_sink_error_propagates(self, filtering_dispatcher):
        """Erreur du puits propagée telle quelle, sans nouvelle tentative."""
        dispatcher, sink, _ = filtering_dispatcher
        error = ConnectionError("storage unavailable")
        sink.log.side_effect = error

        with pytest.raises(ConnectionError) as exc_info:
            dispatcher.log("posts", "msg", {}, 1, {"posts": "updated"})

        assert exc_info.value is error
        assert sink.log.call_count == 1

    def test_sink_error_on_flush_propagates(self, filtering_dispatcher):
        dispatcher, sink, manager = filtering_dispatcher
        sink.log.side_effect = ConnectionError("storage unavailable")

        with pytest.raises(ConnectionError):
            with manager.scope():
                dispatcher.delayed_log("posts", "h", "msg", {}, 1, {"posts": "updated"})

        assert sink.log.call_count == 1


# ══════════════════════════════════════════════════════════════════════════════
# TESTS VALIDATION DIFFÉRÉE
# ══════════════════════════════════════════════════════════════════════════════


class TestDelayedLog:
    def test_last_writer_wins_single_sink_call(self, filtering_dispatcher):
        """delayed_log(h, A) puis delayed_log(h, B): un seul appel, avec B."""
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            dispatcher.delayed_log("posts", "post-12", "Draft saved", {"v": "A"}, 12, {"posts": "updated"}, 1)
            dispatcher.delayed_log("posts", "post-12", "Published", {"v": "B"}, 12, {"posts": "published"}, 1)
            sink.log.assert_not_called()

        sink.log.assert_called_once_with("posts", "Published", {"v": "B"}, 12, {"posts": "published"}, 1)

    def test_commit_scheduled_once(self, filtering_dispatcher):
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope() as uow:
            for handle in ("a", "b", "a", "c"):
                dispatcher.delayed_log("posts", handle, handle, {}, 1, {"posts": "updated"}, 1)
            assert uow.scheduled == [LogDispatcher.COMMIT_KEY]

        assert [c[0][1] for c in sink.log.call_args_list] == ["a", "b", "c"]

    def test_flush_goes_through_filtering(self, filtering_dispatcher):
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            dispatcher.delayed_log("posts", "h", "msg", {}, 1, {"comments": "updated"}, 1)

        sink.log.assert_not_called()

    def test_user_resolved_at_store_time(self, filtering_dispatcher, identity_provider):
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            with identity_provider.acting_as(Identity(user_id=5)):
                dispatcher.delayed_log("posts", "h", "msg", {}, 1, {"posts": "updated"})

        assert sink.log.call_args[0][5] == 5

    def test_requires_unit_of_work(self, filtering_dispatcher):
        dispatcher, _, _ = filtering_dispatcher

        with pytest.raises(NoActiveUnitOfWorkError):
            dispatcher.delayed_log("posts", "h", "msg", {}, 1, {"posts": "updated"})

    def test_commit_deferred_then_end(self, filtering_dispatcher):
        """Validation manuelle puis fin d'unité: une seule passe."""
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            dispatcher.delayed_log("posts", "h", "msg", {}, 1, {"posts": "updated"}, 1)
            assert dispatcher.commit_deferred() == 1

        assert sink.log.call_count == 1

    def test_delayed_after_commit_logs_immediately(self, filtering_dispatcher, debug_logger):
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            dispatcher.delayed_log("posts", "a", "first", {}, 1, {"posts": "updated"}, 1)
            dispatcher.commit_deferred()
            dispatcher.delayed_log("posts", "b", "late", {}, 1, {"posts": "updated"}, 1)
            assert sink.log.call_count == 2

        assert sink.log.call_count == 2
        assert debug_logger.get_entries_by_level(LogLevel.WARN)

    def test_units_of_work_are_isolated(self, filtering_dispatcher):
        dispatcher, sink, manager = filtering_dispatcher

        with manager.scope():
            dispatcher.delayed_log("posts", "h", "first", {}, 1, {"posts": "updated"}, 1)
        with manager.scope():
            dispatcher.delayed_log("posts", "h", "second", {}, 1, {"posts": "updated"}, 1)

        assert [c[0][1] for c in sink.log.call_args_list] == ["first", "second"]


# ══════════════════════════════════════════════════════════════════════════════
# TESTS RÉFÉRENCE PRÉCÉDENTE
# ══════════════════════════════════════════════════════════════════════════════


class TestPreviousRecord:
    def test_previous_record_tracked_per_unit_of_work(self, dispatcher, sink, uow_manager):
        with uow_manager.scope():
            assert dispatcher.previous_record_id is None
            first = dispatcher.log("posts", "a", {}, 1, {"posts": "updated"}, 1)
            second = dispatcher.log("posts", "b", {}, 1, {"posts": "updated"}, 1)
            assert dispatcher.previous_record_id == second
            assert first != second

        with uow_manager.scope():
            assert dispatcher.previous_record_id is None

    def test_outside_unit_of_work(self, dispatcher):
        assert dispatcher.log("posts", "a", {}, 1, {"posts": "updated"}, 1) == 1
        assert dispatcher.previous_record_id is None


class TestInMemoryLogSink:
    def test_records_and_summary(self):
        sink = InMemoryLogSink()

        record_id = sink.log("posts", "Updated %(title)s", {"title": "Hello"}, 12, {"posts": "updated"}, 3)

        record = sink.get(record_id)
        assert record.summary == "Updated Hello"
        assert sink.get_by_connector("posts") == [record]

    def test_summary_falls_back_to_template(self):
        sink = InMemoryLogSink()

        record = sink.get(sink.log("posts", "Updated %(title)s", {}, 12, {"posts": "updated"}, 3))

        assert record.summary == "Updated %(title)s"

    def test_clear(self):
        sink = InMemoryLogSink()
        sink.log("posts", "m", {}, 1, {"posts": "updated"}, 1)

        sink.clear()

        assert sink.records == []
