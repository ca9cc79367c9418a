"""End-to-end search strategy tests against an in-memory store."""
from __future__ import annotations

import unittest
from unittest import mock

from skillmatch.errors import QueryFailed
from skillmatch.models import Skill
from skillmatch.search import (
    LegacySearch,
    PrioritySearch,
    SqlPrioritySearch,
    get_strategy,
)
from tests.helpers import make_record, memory_store


def _mixed_listings():
    """Listings across four sources with overlapping skills and tied scores."""
    rows = []
    for s, source in enumerate(("siteA", "siteB", "siteC", "siteD")):
        rows += [
            make_record(f"https://{source}/java-title-{s}", "Java developer", skills="Spring", source=source, hours_ago=s),
            make_record(f"https://{source}/java-skill-{s}", "Backend engineer", skills="Java, AWS", source=source, hours_ago=s + 1),
            make_record(f"https://{source}/aws-{s}", "Cloud engineer", skills="AWS", detail="Java batch jobs", source=source, hours_ago=s + 2),
            make_record(f"https://{source}/tie-a-{s}", "Java engineer", source=source, hours_ago=3),
            make_record(f"https://{source}/tie-b-{s}", "Java engineer", source=source, hours_ago=3),
            make_record(f"https://{source}/detail-{s}", "Engineer", detail="java", source=source),
            make_record(f"https://{source}/go-{s}", "Go engineer", skills="Go", source=source),
        ]
    return rows


class TestPrioritySearch(unittest.TestCase):
    def setUp(self) -> None:
        self.store = memory_store()

    def tearDown(self) -> None:
        self.store.dispose()

    def test_single_title_match_is_returned(self) -> None:
        self.store.upsert([make_record("https://a/1", "Java backend role")])
        results = PrioritySearch(self.store).search(["Java"])
        self.assertEqual([r.url for r in results], ["https://a/1"])

    def test_detail_only_match_is_excluded(self) -> None:
        self.store.upsert([make_record("https://a/1", "Backend role", detail="Java")])
        self.assertEqual(PrioritySearch(self.store).search(["Java", "Spring", "AWS"]), [])

    def test_fourth_skill_is_ignored(self) -> None:
        self.store.upsert([make_record("https://a/1", "Kotlin engineer", skills="Kotlin")])
        results = PrioritySearch(self.store).search(["Java", "Spring", "AWS", "Kotlin"])
        self.assertEqual(results, [])

    def test_empty_skills_never_query_the_store(self) -> None:
        store = mock.Mock()
        for strategy in (PrioritySearch(store), SqlPrioritySearch(store)):
            self.assertEqual(strategy.search([], [Skill("Java", 5)]), [])
        store.find_candidates.assert_not_called()
        store.fetch.assert_not_called()

    def test_caps_hold_on_mixed_data(self) -> None:
        self.store.upsert(_mixed_listings())
        results = PrioritySearch(self.store).search(["Java", "AWS"])

        self.assertEqual(len(results), 8)
        per_source: dict[str, int] = {}
        for r in results:
            per_source[r.source] = per_source.get(r.source, 0) + 1
        self.assertTrue(all(n <= 3 for n in per_source.values()))

    def test_query_failure_propagates(self) -> None:
        store = mock.Mock()
        store.find_candidates.side_effect = QueryFailed("down")
        with self.assertRaises(QueryFailed):
            PrioritySearch(store).search(["Java"])


class TestSqlMatchesInProcess(unittest.TestCase):
    def setUp(self) -> None:
        self.store = memory_store()
        self.store.upsert(_mixed_listings())

    def tearDown(self) -> None:
        self.store.dispose()

    def _assert_same(self, skills) -> None:
        in_process = PrioritySearch(self.store).search(skills)
        pushed_down = SqlPrioritySearch(self.store).search(skills)
        self.assertEqual([r.url for r in pushed_down], [r.url for r in in_process])

    def test_java_and_aws(self) -> None:
        self._assert_same(["Java", "AWS"])

    def test_single_skill(self) -> None:
        self._assert_same(["java"])

    def test_three_skills(self) -> None:
        self._assert_same(["Spring", "AWS", "Java"])

    def test_nothing_relevant(self) -> None:
        self._assert_same(["Rust"])


class TestLegacySearch(unittest.TestCase):
    def setUp(self) -> None:
        self.store = memory_store()

    def tearDown(self) -> None:
        self.store.dispose()

    def test_caps_four_per_source_and_twelve_total(self) -> None:
        records = [
            make_record(f"https://{src}/{i}", "Engineer", detail="python", source=src, hours_ago=i)
            for src in ("s1", "s2", "s3", "s4")
            for i in range(6)
        ]
        self.store.upsert(records)

        results = LegacySearch(self.store).search([], [Skill("Python", 3)])

        self.assertEqual(len(results), 12)
        per_source: dict[str, int] = {}
        for r in results:
            per_source[r.source] = per_source.get(r.source, 0) + 1
        self.assertEqual(set(per_source.values()), {3})
        times = [r.posted_at for r in results]
        self.assertEqual(times, sorted(times, reverse=True))

    def test_falls_back_to_key_skills(self) -> None:
        self.store.upsert([make_record("https://a/1", "Engineer", detail="uses go")])
        results = LegacySearch(self.store).search(["Go"])
        self.assertEqual([r.url for r in results], ["https://a/1"])

    def test_no_terms(self) -> None:
        store = mock.Mock()
        self.assertEqual(LegacySearch(store).search([], []), [])
        store.find_candidates.assert_not_called()


class TestGetStrategy(unittest.TestCase):
    def test_known_names(self) -> None:
        store = mock.Mock()
        self.assertIsInstance(get_strategy("priority", store), PrioritySearch)
        self.assertIsInstance(get_strategy("priority-sql", store), SqlPrioritySearch)
        self.assertIsInstance(get_strategy("legacy", store), LegacySearch)

    def test_unknown_name(self) -> None:
        with self.assertRaises(ValueError):
            get_strategy("fuzzy", mock.Mock())


if __name__ == "__main__":
    unittest.main()
