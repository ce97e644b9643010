"""Tests for address parsing, rendering, keys and variant rewriting."""

import pytest

from mirror_resolver.address import (
    Address,
    ResourceGroupKey,
    group_key,
    host_cluster_key,
    parse_address,
    rewrite_variants,
)


class TestParseAddress:
    """Test suite for parse_address()."""

    def test_parse_fields(self):
        """Test that every structural field is extracted."""
        addr = parse_address("https://k03.mbdny.org/a/b/c/1.jpg")
        assert addr == Address(
            prefix="k", index=3, domain_root="mbdny", domain_suffix="org", path="/a/b/c/1.jpg"
        )

    def test_case_insensitive_scheme_and_host(self):
        """Test that scheme and host are matched case-insensitively and lowered."""
        addr = parse_address("HTTPS://K03.MbDny.ORG/Series/1.JPG")
        assert addr is not None
        assert addr.prefix == "k"
        assert addr.domain_root == "mbdny"
        assert addr.domain_suffix == "org"
        assert addr.path == "/Series/1.JPG"  # path kept verbatim

    def test_three_digit_index_ignores_leading_zeros(self):
        """Test that 003 parses as index 3."""
        addr = parse_address("https://n003.bato.to/x/1.png")
        assert addr is not None
        assert addr.index == 3
        assert addr.render() == "https://n03.bato.to/x/1.png"

    def test_http_scheme_renders_as_https(self):
        """Test that http input is rendered in canonical https form."""
        addr = parse_address("http://x12.mbrtz.net/p/2.webp")
        assert addr is not None
        assert addr.render() == "https://x12.mbrtz.net/p/2.webp"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            None,
            "not a url",
            "https://k3.mbdny.org/a.jpg",  # one digit
            "https://k1234.mbdny.org/a.jpg",  # four digits
            "https://k03.mbdny.com/a.jpg",  # unknown suffix
            "https://k03.mbdny.org",  # no path
            "https://03.mbdny.org/a.jpg",  # no prefix
            "ftp://k03.mbdny.org/a.jpg",
            "https://k03.sub.mbdny.org/a.jpg",
        ],
    )
    def test_invalid_addresses_return_none(self, url):
        """Test that structural mismatches yield None rather than a partial parse."""
        assert parse_address(url) is None

    def test_custom_suffixes(self):
        """Test that the suffix set can be injected."""
        assert parse_address("https://k03.mbdny.com/a.jpg", suffixes=("com",)) is not None
        assert parse_address("https://k03.mbdny.org/a.jpg", suffixes=("com",)) is None

    @pytest.mark.parametrize(
        "url",
        [
            "https://k03.mbdny.org/a/b/c/1.jpg",
            "https://n00.bato.to/x.png",
            "https://t123.mp-q0m.net/deep/path/file.jpg?v=2",
        ],
    )
    def test_render_reproduces_canonical_form(self, url):
        """Test that rendering a parsed canonical address returns it unchanged."""
        assert parse_address(url).render() == url

    def test_with_host_keeps_path(self):
        """Test that host swaps never touch the path."""
        addr = parse_address("https://k03.mbdny.org/a/1.jpg")
        moved = addr.with_host(prefix="n", index=7, domain_root="bato", domain_suffix="to")
        assert moved.render() == "https://n07.bato.to/a/1.jpg"
        assert addr.prefix == "k"  # original untouched


class TestKeys:
    """Test suite for group and host-cluster keys."""

    def test_group_key_uses_root_and_leading_segments(self):
        """Test the (root, first three segments) grouping."""
        addr = parse_address("https://k03.mbdny.org/a/b/c/1.jpg")
        assert group_key(addr) == ResourceGroupKey("mbdny", "a/b/c")

    def test_siblings_share_a_group(self):
        """Test that pages of one series land in the same group."""
        first = parse_address("https://k03.mbdny.org/a/b/c/1.jpg")
        second = parse_address("https://k07.mbdny.org/a/b/c/2.jpg")
        assert group_key(first) == group_key(second)

    def test_group_key_short_path_and_query(self):
        """Test that short paths use what exists and queries are ignored."""
        addr = parse_address("https://k03.mbdny.org/x/1.jpg?size=big")
        assert group_key(addr) == ResourceGroupKey("mbdny", "x/1.jpg")
        assert group_key(addr, segments=1) == ResourceGroupKey("mbdny", "x")

    def test_host_cluster_key(self):
        """Test that the cluster key is lower-cased scheme://host."""
        assert host_cluster_key("https://N03.MbDny.org/a/b.jpg") == "https://n03.mbdny.org"
        assert host_cluster_key("http://n03.mbdny.org/a") == "http://n03.mbdny.org"


class TestRewriteVariants:
    """Test suite for rewrite_variants()."""

    def test_rewrites_every_host(self):
        """Test that each URL in a srcset list is pointed at the working host."""
        working = parse_address("https://n05.mbrtz.org/a/1.jpg")
        srcset = "https://k03.mbdny.org/a/1.jpg 1x, https://k03.mbdny.org/a/1@2x.jpg 2x"
        assert rewrite_variants(srcset, working) == (
            "https://n05.mbrtz.org/a/1.jpg 1x, https://n05.mbrtz.org/a/1@2x.jpg 2x"
        )

    def test_nothing_to_rewrite(self):
        """Test that empty or foreign lists return None."""
        working = parse_address("https://n05.mbrtz.org/a/1.jpg")
        assert rewrite_variants(None, working) is None
        assert rewrite_variants("", working) is None
        assert rewrite_variants("https://cdn.example.com/a.jpg 1x", working) is None
