# File: tests/test_scope.py
import pytest

from llms_scout.crawler.scope import DomainScope
from llms_scout.utils import normalize_url, root_domain


@pytest.mark.parametrize(
    "host,expected",
    [
        ("acme.com", "acme.com"),
        ("www.acme.com", "acme.com"),
        ("docs.eu.acme.com", "acme.com"),
        ("shop.acme.co.uk", "acme.co.uk"),
        ("acme.co.uk", "acme.co.uk"),
        ("127.0.0.1", "127.0.0.1"),
        ("localhost", "localhost"),
    ],
)
def test_root_domain(host, expected):
    assert root_domain(host) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("acme.example", "https://acme.example/"),
        ("https://ACME.example/Docs/#intro", "https://acme.example/Docs"),
        ("https://acme.example/docs/", "https://acme.example/docs"),
        ("http://acme.example/?q=1", "http://acme.example/?q=1"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


def test_variants_from_seed():
    scope = DomainScope("https://www.acme.com/")
    assert scope.root_domain == "acme.com"
    assert {"www.acme.com", "acme.com"} <= scope.domain_variants
    assert scope.is_in_scope("https://acme.com/pricing")
    assert scope.is_in_scope("http://www.acme.com/about")


def test_doc_subdomains_are_in_scope_and_remembered():
    scope = DomainScope("https://acme.com")
    assert scope.is_in_scope("https://docs.acme.com/start")
    assert scope.is_in_scope("https://developers.acme.com/")
    # is_in_scope не меняет состояние
    assert scope.related_subdomains == set()

    assert scope.observe("https://docs.acme.com/start")
    assert scope.observe("https://docs.acme.com/start")
    assert scope.related_subdomains == {"docs.acme.com"}


def test_doc_path_on_other_subdomain_qualifies():
    scope = DomainScope("https://acme.com")
    assert scope.is_in_scope("https://learn.acme.com/docs/intro")
    assert not scope.is_in_scope("https://shop.acme.com/cart")


def test_foreign_domains_rejected_without_mutation():
    scope = DomainScope("https://acme.com")
    before = (set(scope.domain_variants), set(scope.related_subdomains))
    assert not scope.is_in_scope("https://docs.other.com/")
    assert not scope.observe("https://docs.other.com/")
    assert not scope.is_in_scope("https://notacme.com/docs")
    assert not scope.is_in_scope("mailto:team@acme.com")
    assert (scope.domain_variants, scope.related_subdomains) == before


def test_redirect_variant_widens_site():
    scope = DomainScope("https://acme.com")
    scope.add_variant("https://www.acme.io/")
    assert scope.is_in_scope("https://acme.io/about")
    assert scope.is_in_scope("https://www.acme.io/about")


def test_confirm_probed_subdomain():
    scope = DomainScope("https://acme.com")
    assert not scope.is_in_scope("https://community.acme.com/")
    assert scope.confirm_subdomain("community.acme.com")
    assert scope.is_in_scope("https://community.acme.com/")
    assert not scope.confirm_subdomain("community.other.com")


def test_seed_without_host():
    with pytest.raises(ValueError):
        DomainScope("https://")
