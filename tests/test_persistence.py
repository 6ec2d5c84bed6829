"""Tests for the SQLite snapshot store and the device-local store."""

import logging
import sqlite3

from pos.persistence import LocalStore, SqliteSnapshotStore


class TestSnapshotStore:
    def test_load_missing_account(self, remote):
        assert remote.load("nobody") is None

    def test_save_replaces_whole_tree(self, remote):
        remote.save("acct-1", {"menu": {"M1": {"id": "M1"}}, "orders": {"O1": {}}})
        remote.save("acct-1", {"menu": {}})

        assert remote.load("acct-1") == {"menu": {}}

    def test_accounts_are_isolated(self, remote):
        remote.save("acct-1", {"menu": {"M1": {}}})
        assert remote.load("acct-2") is None

    def test_subscribe_delivers_current_then_saves(self, remote):
        remote.save("acct-1", {"tables": {}})
        received = []

        unsubscribe = remote.subscribe("acct-1", received.append)
        remote.save("acct-1", {"tables": {"T1": {}}})
        remote.save("acct-2", {"tables": {"T2": {}}})
        unsubscribe()
        remote.save("acct-1", {"tables": {}})

        assert received == [{"tables": {}}, {"tables": {"T1": {}}}]

    def test_poll_delivers_writes_from_other_instances_once(self, remote):
        other = SqliteSnapshotStore(remote.db_path)
        received = []
        remote.subscribe("acct-1", received.append)

        remote.poll()
        other.save("acct-1", {"tables": {"T1": {}}})
        remote.poll()
        remote.poll()
        remote.save("acct-1", {"tables": {}})
        remote.poll()

        assert received == [None, {"tables": {"T1": {}}}, {"tables": {}}]

    def test_schema_survives_reopen(self, tmp_path):
        path = str(tmp_path / "nested" / "remote.db")
        SqliteSnapshotStore(path).save("acct-1", {"settings": {"store_name": "Bhoj"}})

        assert SqliteSnapshotStore(path).load("acct-1") == {"settings": {"store_name": "Bhoj"}}


class TestLocalStore:
    def test_cart_round_trip(self, local, line, burger, lassi):
        cart = (line(burger, "C1", quantity=2, notes="no onion"), line(lassi, "C2"))
        local.save_cart(cart)
        assert local.load_cart() == cart

    def test_missing_cart_is_empty(self, local):
        assert local.load_cart() == ()

    def test_unreadable_cart_is_empty(self, local, caplog):
        with sqlite3.connect(local.db_path) as conn:
            conn.execute("INSERT INTO local_state (key, value) VALUES ('pos_cart', '{not json')")

        with caplog.at_level(logging.ERROR, logger="pos.persistence"):
            assert local.load_cart() == ()
        assert "Failed to parse cart" in caplog.text

    def test_sound_flag_defaults_off(self, local):
        assert local.load_sound_enabled() is False
        local.save_sound_enabled(True)
        assert local.load_sound_enabled() is True
        local.save_sound_enabled(False)
        assert LocalStore(local.db_path).load_sound_enabled() is False
