import unittest

from app.core.errors import Conflict, NotFound
from app.services.engagement.toggle_engine import toggle_relation
from helpers import run_async


class InMemoryRelation:
    name = "memory"

    def __init__(self):
        self.rows = set()
        self.concurrent_insert = False
        self.insert_error = None

    async def delete(self, key):
        if key in self.rows:
            self.rows.remove(key)
            return True
        return False

    async def insert(self, key):
        if self.insert_error:
            raise self.insert_error
        if self.concurrent_insert:
            self.rows.add(key)
        if key in self.rows:
            raise Conflict("duplicate")
        self.rows.add(key)
        return key


class TestToggleRelation(unittest.TestCase):
    def test_first_toggle_creates(self):
        relation = InMemoryRelation()
        self.assertTrue(run_async(toggle_relation(relation, "k")))
        self.assertEqual(relation.rows, {"k"})

    def test_second_toggle_removes(self):
        relation = InMemoryRelation()
        run_async(toggle_relation(relation, "k"))
        self.assertFalse(run_async(toggle_relation(relation, "k")))
        self.assertEqual(relation.rows, set())

    def test_parity_of_toggles(self):
        relation = InMemoryRelation()
        for n in range(1, 8):
            state = run_async(toggle_relation(relation, "k"))
            self.assertEqual(state, n % 2 == 1)
            self.assertEqual("k" in relation.rows, n % 2 == 1)

    def test_keys_are_independent(self):
        relation = InMemoryRelation()
        run_async(toggle_relation(relation, "a"))
        self.assertTrue(run_async(toggle_relation(relation, "b")))
        self.assertEqual(relation.rows, {"a", "b"})

    def test_lost_insert_race_still_reports_present(self):
        relation = InMemoryRelation()
        relation.concurrent_insert = True
        self.assertTrue(run_async(toggle_relation(relation, "k")))
        self.assertEqual(relation.rows, {"k"})

    def test_other_insert_failures_propagate(self):
        relation = InMemoryRelation()
        relation.insert_error = NotFound("User not found")
        with self.assertRaises(NotFound):
            run_async(toggle_relation(relation, "k"))
