"""
Unit tests for the website/technology and credential repositories.
"""

import pytest

from credvault.core.exceptions import InvalidSearchFieldError, StoreError
from credvault.domain.models import SanitizedRecord, WebsiteTechnologies
from credvault.infrastructure.db.repository import CredentialRepository, like_pattern


def site(url: str, *technologies: str) -> WebsiteTechnologies:
    return WebsiteTechnologies(url=url, technologies=list(technologies))


def cred(url: str, username: str, password: str = "pw", notes: str = "") -> SanitizedRecord:
    return SanitizedRecord(url=url, username=username, password=password, notes=notes)


@pytest.fixture
def populated_websites(website_repo):
    assert website_repo.insert_website_technologies(
        [
            site("example.com", "Nginx", "React"),
            site("shop.io", "React", "PHP"),
            site("bare.net"),
        ]
    )
    return website_repo


class TestWebsiteRepository:

    def test_search_by_url(self, populated_websites):
        results = populated_websites.search_websites("shop")

        assert results == [site("shop.io", "PHP", "React")]

    def test_search_by_technology_returns_all_technologies(self, populated_websites):
        results = populated_websites.search_websites("Nginx", by_technology=True)

        assert results == [site("example.com", "Nginx", "React")]

    def test_search_by_shared_technology(self, populated_websites):
        urls = [r.url for r in populated_websites.search_websites("react", by_technology=True)]

        assert urls == ["example.com", "shop.io"]

    def test_empty_query_returns_every_website(self, populated_websites):
        for by_technology in (False, True):
            urls = [r.url for r in populated_websites.search_websites("", by_technology)]
            assert urls == ["bare.net", "example.com", "shop.io"]

    def test_wildcards_are_literal(self, populated_websites):
        assert populated_websites.search_websites("%") == []
        assert populated_websites.search_websites("_") == []

    def test_technologies_are_sorted_and_distinct(self, populated_websites):
        assert populated_websites.get_all_technologies() == ["Nginx", "PHP", "React"]

    def test_reinsert_is_ignored(self, populated_websites):
        before = populated_websites.counts()

        assert populated_websites.insert_website_technologies([site("example.com", "React")])
        assert populated_websites.counts() == before

    def test_failed_batch_rolls_back_completely(self, website_repo):
        broken = WebsiteTechnologies.model_construct(url="bad.com", technologies=[None])

        result = website_repo.insert_website_technologies([site("good.com", "PHP"), broken])

        assert result is False
        assert website_repo.counts() == {
            "websites": 0,
            "technologies": 0,
            "website_technologies": 0,
        }

    def test_delete_missing_website_is_a_noop(self, populated_websites):
        before = populated_websites.counts()

        assert populated_websites.delete_website("nowhere.com") is False
        assert populated_websites.counts() == before

    def test_delete_website_removes_links_only(self, populated_websites):
        assert populated_websites.delete_website("example.com") is True

        counts = populated_websites.counts()
        assert counts["websites"] == 2
        assert counts["website_technologies"] == 2
        assert populated_websites.get_all_technologies() == ["Nginx", "PHP", "React"]

    def test_delete_all_keeps_technologies(self, populated_websites):
        assert populated_websites.delete_all_website_technology_data() is True

        assert populated_websites.get_all_websites() == []
        assert populated_websites.counts()["website_technologies"] == 0
        assert populated_websites.get_all_technologies() == ["Nginx", "PHP", "React"]


class TestCredentialRepository:

    def test_add_returns_persisted_count(self, credential_repo):
        added = credential_repo.add_entries(
            [cred("https://a.com/", "alice"), cred("https://b.com/", "bob")]
        )

        assert added == 2
        assert [e.id for e in credential_repo.get_all_entries()] == [2, 1]

    def test_failed_batch_rolls_back(self, credential_repo):
        broken = SanitizedRecord.model_construct(
            url="https://b.com/", username=None, password="pw", notes=""
        )

        with pytest.raises(StoreError):
            credential_repo.add_entries([cred("https://a.com/", "alice"), broken])

        assert credential_repo.get_all_entries() == []

    def test_search_is_case_insensitive_on_one_field(self, credential_repo):
        credential_repo.add_entries(
            [cred("https://a.com/", "Alice"), cred("https://alice.org/", "bob")]
        )

        results = credential_repo.search_entries("ALICE", "username")

        assert [e.username for e in results] == ["Alice"]

    def test_search_all_fields_newest_first(self, credential_repo):
        credential_repo.add_entries([cred("https://a.com/", "alice")])
        credential_repo.add_entries([cred("https://b.com/", "bob", notes="alice's alt")])

        results = credential_repo.search_entries("alice")

        assert [e.username for e in results] == ["bob", "alice"]

    def test_search_by_id(self, credential_repo):
        credential_repo.add_entries([cred("https://a.com/", "alice"), cred("https://b.com/", "bob")])

        assert [e.username for e in credential_repo.search_entries("2", "id")] == ["bob"]

    def test_empty_query_returns_everything(self, credential_repo):
        credential_repo.add_entries([cred("https://a.com/", "alice"), cred("https://b.com/", "bob")])

        assert len(credential_repo.search_entries("", "url")) == 2

    def test_search_returns_every_match(self, credential_repo):
        credential_repo.add_entries(
            [cred("https://a.com/", f"user{i}") for i in range(250)]
        )

        assert len(credential_repo.get_all_entries()) == 250
        assert len(credential_repo.search_entries("a.com", "url")) == 250
        assert len(credential_repo.search_entries("a.com")) == 250

    def test_search_limit_is_opt_in(self, store):
        repo = CredentialRepository(store, search_limit=1)
        repo.add_entries([cred("https://a.com/", "alice"), cred("https://a.com/", "bob")])

        assert len(repo.search_entries("a.com")) == 1

    def test_unknown_field_is_rejected(self, credential_repo):
        with pytest.raises(InvalidSearchFieldError):
            credential_repo.search_entries("x", "password; DROP TABLE ulp_entries")

    def test_delete_by_url(self, credential_repo):
        credential_repo.add_entries(
            [cred("https://a.com/", "alice"), cred("https://a.com/", "eve"), cred("https://b.com/", "bob")]
        )

        assert credential_repo.delete_entries_by_url("https://a.com/") is True
        assert credential_repo.delete_entries_by_url("https://a.com/") is False
        assert [e.username for e in credential_repo.get_all_entries()] == ["bob"]

    def test_delete_all_restarts_ids(self, credential_repo):
        credential_repo.add_entries([cred("https://a.com/", "alice"), cred("https://b.com/", "bob")])

        assert credential_repo.delete_all_entries() is True
        assert credential_repo.get_all_entries() == []

        credential_repo.add_entries([cred("https://c.com/", "carol")])
        assert credential_repo.get_all_entries()[0].id == 1

    def test_stats(self, credential_repo):
        assert credential_repo.get_stats().total == 0
        assert credential_repo.get_stats().last_update is None

        credential_repo.add_entries(
            [cred("https://a.com/", "alice"), cred("https://b.com/", "alice"), cred("https://b.com/", "bob")]
        )
        stats = credential_repo.get_stats()

        assert stats.total == 3
        assert stats.unique_users == 2
        assert stats.last_update is not None

    def test_unique_store_reports_persist_time_count(self, unique_store):
        repo = CredentialRepository(unique_store)
        batch = [cred("https://a.com/", "alice", "pw1"), cred("https://b.com/", "bob", "pw2")]

        assert repo.add_entries(batch) == 2
        assert repo.add_entries(batch + [cred("https://c.com/", "carol")]) == 1
        assert len(repo.get_all_entries()) == 3


def test_like_pattern_escapes_wildcards():
    assert like_pattern("50%_off\\") == "%50\\%\\_off\\\\%"
