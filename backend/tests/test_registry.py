"""Тесты реестра партий."""

from chessrelay import registry as registry_module
from chessrelay.constants import GAME_ID_ALPHABET, GAME_ID_LENGTH


def test_generate_game_id_uses_unambiguous_alphabet():
    for _ in range(200):
        game_id = registry_module.generate_game_id()
        assert len(game_id) == GAME_ID_LENGTH
        assert set(game_id) <= set(GAME_ID_ALPHABET)
        assert not set(game_id) & set("0O1I")


class TestGameRegistry:
    def test_create_binds_creator_to_white(self, registry, make_conn):
        creator = make_conn()

        g = registry.create(creator)

        assert g.players["w"] is creator
        assert g.players["b"] is None
        assert g.fen == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
        assert g.created_at > 0
        assert registry.get(g.id) is g
        assert g.id in registry
        assert len(registry) == 1

    def test_create_rerolls_on_collision(self, registry, make_conn, monkeypatch):
        ids = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
        monkeypatch.setattr(registry_module, "generate_game_id", lambda: next(ids))

        first = registry.create(make_conn())
        second = registry.create(make_conn())

        assert first.id == "AAAAAA"
        assert second.id == "BBBBBB"
        assert registry.get("AAAAAA") is first

    def test_get_unknown_returns_none(self, registry):
        assert registry.get("ZZZZZZ") is None

    def test_delete_is_idempotent(self, registry, make_conn):
        g = registry.create(make_conn())

        registry.delete(g.id)
        registry.delete(g.id)

        assert registry.get(g.id) is None
        assert len(registry) == 0


class TestGameSession:
    def test_free_seat_prefers_black(self, registry, make_conn):
        g = registry.create(make_conn())
        assert g.free_seat() == "b"

    def test_free_seat_falls_back_to_white(self, registry, make_conn):
        g = registry.create(make_conn())
        g.players["w"] = None
        g.players["b"] = make_conn()
        assert g.free_seat() == "w"

    def test_free_seat_none_when_full(self, registry, make_conn):
        g = registry.create(make_conn())
        g.players["b"] = make_conn()
        assert g.free_seat() is None

    def test_release_only_for_current_occupant(self, registry, make_conn):
        creator, stranger = make_conn(), make_conn()
        g = registry.create(creator)

        assert not g.release("w", stranger)
        assert g.players["w"] is creator

        assert g.release("w", creator)
        assert g.players["w"] is None
        assert g.is_empty
