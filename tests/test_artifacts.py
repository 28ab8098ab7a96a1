"""
Tests for the artifact components: loader, store, dealer and page metadata extraction.
"""

import httpx
import pytest

from conftest import artifact, barcode, html_page, mock_client
from perception_backend.artifacts.artifact_dealer import ArtifactDealer
from perception_backend.artifacts.artifact_loader import ArtifactLoader, artifacts_from_json_ld
from perception_backend.artifacts.artifact_store import LocalArtifactStore
from perception_backend.artifacts.page_metadata import extract_page_metadata
from perception_backend.artifacts.schema import (
    ARArtifact,
    DetectedImage,
    GeoCoordinates,
    Marker,
    RawContent,
    StructuredContent,
)
from perception_backend.files.document import Document
from perception_backend.files.http_fetcher import HttpDocumentFetcher

IMAGE_TARGET = {
    "@type": "ARImageTarget",
    "name": "poster-1",
    "image": [
        "https://example.com/poster.jpg",
        {"@type": "ImageObject", "contentUrl": "https://example.com/poster.png", "encodingFormat": "image/png"},
    ],
}


class TestArtifactsFromJsonLd:

    def test_finds_nested_and_graph_artifacts(self):
        data = {
            "@context": "https://schema.org",
            "@graph": [
                artifact(barcode("a"), {"@type": "Thing", "name": "A"}),
                {"@type": "WebPage", "hasPart": artifact(barcode("b"), "https://example.com/b")},
            ],
        }

        artifacts = artifacts_from_json_ld(data)

        assert [a.target["text"] for a in artifacts] == ["a", "b"]
        assert artifacts[0].content == StructuredContent({"@type": "Thing", "name": "A"})
        assert artifacts[1].content == RawContent("https://example.com/b")

    def test_target_list_expands(self):
        data = artifact([barcode("a"), barcode("b")], "https://example.com/x")
        artifacts = artifacts_from_json_ld(data)

        assert len(artifacts) == 2
        assert artifacts[0].content == artifacts[1].content

    def test_string_content_kept_verbatim(self):
        artifacts = artifacts_from_json_ld(artifact(barcode("a"), "not a url"))

        assert artifacts[0].content == RawContent("not a url")

    def test_missing_target_skipped(self):
        assert artifacts_from_json_ld({"@type": "ARArtifact", "arContent": "x"}) == []

    def test_missing_content_allowed(self):
        artifacts = artifacts_from_json_ld({"@type": "ARArtifact", "arTarget": barcode("a")})
        assert artifacts[0].content is None


class TestArtifactLoader:

    @pytest.mark.asyncio
    async def test_from_document(self):
        doc = Document.from_html(
            html_page(artifact(barcode("a"), "https://example.com/a"), {"@type": "WebPage"}),
            "https://example.com/page",
        )
        loader = ArtifactLoader(fetch_json=None)

        artifacts = await loader.from_document(doc)

        assert len(artifacts) == 1
        assert artifacts[0].target == barcode("a")

    @pytest.mark.asyncio
    async def test_malformed_json_ld_block_skipped(self):
        html = (
            '<html><head><script type="application/ld+json">{broken</script>'
            '<script type="application/ld+json">'
            '{"@type": "ARArtifact", "arTarget": {"@type": "Barcode", "text": "a"}, "arContent": "x"}'
            '</script></head></html>'
        )
        doc = Document.from_html(html, "https://example.com/")
        artifacts = await ArtifactLoader(fetch_json=None).from_document(doc)

        assert len(artifacts) == 1

    @pytest.mark.asyncio
    async def test_from_json_url(self):
        sitemap = [artifact(barcode("a"), "https://example.com/a"), artifact(barcode("b"), "https://example.com/b")]
        client = mock_client({
            "https://example.com/artifacts.jsonld": httpx.Response(200, json=sitemap),
        })
        loader = ArtifactLoader(fetch_json=HttpDocumentFetcher(client).fetch_json)

        artifacts = await loader.from_json_url("https://example.com/artifacts.jsonld")

        assert [a.content for a in artifacts] == [
            RawContent("https://example.com/a"),
            RawContent("https://example.com/b"),
        ]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_from_json_url_failure_returns_empty(self):
        client = mock_client({})
        loader = ArtifactLoader(fetch_json=HttpDocumentFetcher(client).fetch_json)

        assert await loader.from_json_url("https://example.com/missing.jsonld") == []
        await client.aclose()


class TestLocalArtifactStore:

    def test_marker_lookup(self):
        store = LocalArtifactStore()
        a = ARArtifact(target=barcode("hello"))
        store.add_artifact(a)

        assert store.find_relevant_artifacts([Marker("hello")], []) == [a]
        assert store.find_relevant_artifacts([Marker("other")], []) == []

    def test_image_lookup(self):
        store = LocalArtifactStore()
        a = ARArtifact(target=IMAGE_TARGET)
        store.add_artifact(a)

        assert store.find_relevant_artifacts([], [DetectedImage("poster-1")]) == [a]

    def test_adding_same_artifact_twice_is_noop(self):
        store = LocalArtifactStore()
        a = ARArtifact(target=barcode("hello"))
        store.add_artifact(a)
        store.add_artifact(a)

        assert len(store) == 1
        assert store.find_relevant_artifacts([Marker("hello")], []) == [a]

    def test_detectable_images(self):
        store = LocalArtifactStore()
        store.add_artifact(ARArtifact(target=IMAGE_TARGET))
        store.add_artifact(ARArtifact(target=barcode("not-an-image")))

        images = store.get_detectable_images()

        assert len(images) == 1
        assert images[0].id == "poster-1"
        assert images[0].media == [
            {"url": "https://example.com/poster.jpg"},
            {"url": "https://example.com/poster.png", "encodingFormat": "image/png"},
        ]


class TestArtifactDealer:

    @pytest.fixture
    def dealer_and_artifacts(self):
        store = LocalArtifactStore()
        a = ARArtifact(target=barcode("a"), content=RawContent("https://example.com/a"))
        b = ARArtifact(target=IMAGE_TARGET, content=RawContent("https://example.com/b"))
        store.add_artifact(a)
        store.add_artifact(b)
        dealer = ArtifactDealer()
        dealer.add_artifact_store(store)
        return dealer, a, b

    @pytest.mark.asyncio
    async def test_marker_found_then_lost(self, dealer_and_artifacts):
        dealer, a, _ = dealer_and_artifacts

        found = await dealer.marker_found(Marker("a"))
        assert [r.artifact for r in found.found] == [a]
        assert found.lost == []

        again = await dealer.marker_found(Marker("a"))
        assert again.found == [] and again.lost == []

        lost = await dealer.marker_lost(Marker("a"))
        assert [r.artifact for r in lost.lost] == [a]
        assert lost.found == []

    @pytest.mark.asyncio
    async def test_image_found_and_lost(self, dealer_and_artifacts):
        dealer, _, b = dealer_and_artifacts

        found = await dealer.image_found(DetectedImage("poster-1"))
        assert [r.artifact for r in found.found] == [b]

        lost = await dealer.image_lost(DetectedImage("poster-1"))
        assert [r.artifact for r in lost.lost] == [b]

    @pytest.mark.asyncio
    async def test_found_and_lost_never_overlap(self, dealer_and_artifacts):
        dealer, _, _ = dealer_and_artifacts
        deltas = [
            await dealer.marker_found(Marker("a")),
            await dealer.image_found(DetectedImage("poster-1")),
            await dealer.marker_lost(Marker("a")),
            await dealer.update_geolocation(GeoCoordinates(51.5, -0.1)),
            await dealer.marker_found(Marker("a")),
            await dealer.image_lost(DetectedImage("poster-1")),
        ]
        for delta in deltas:
            found = {id(r.artifact) for r in delta.found}
            lost = {id(r.artifact) for r in delta.lost}
            assert not found & lost

    @pytest.mark.asyncio
    async def test_unknown_marker_lost_is_harmless(self, dealer_and_artifacts):
        dealer, _, _ = dealer_and_artifacts
        delta = await dealer.marker_lost(Marker("never-seen"))
        assert delta.found == [] and delta.lost == []


class TestExtractPageMetadata:

    def test_json_ld_thing_matching_url_preferred(self):
        html = html_page(
            {"@type": "Organization", "name": "Org", "url": "https://example.com/"},
            {"@type": "Event", "name": "Launch", "url": "https://example.com/e1"},
        )
        doc = Document.from_html(html, "https://example.com/e1")

        assert extract_page_metadata(doc, httpx.URL("https://example.com/e1"))["@type"] == "Event"

    def test_first_thing_when_none_match(self):
        html = html_page(
            artifact(barcode("a"), "x"),
            {"@type": "Product", "name": "Widget"},
        )
        doc = Document.from_html(html, "https://example.com/p")
        metadata = extract_page_metadata(doc, "https://example.com/p")

        assert metadata == {"@type": "Product", "name": "Widget", "url": "https://example.com/p"}

    def test_artifact_with_type_list_never_chosen(self):
        html = html_page(
            {"@type": ["ARArtifact", "Thing"], "arTarget": barcode("a"), "arContent": "x"},
            {"@type": "Product", "name": "Widget"},
        )
        doc = Document.from_html(html, "https://example.com/p")

        assert extract_page_metadata(doc, "https://example.com/p")["@type"] == "Product"

    def test_meta_tag_fallback(self):
        html = html_page(
            title="Fallback title",
            meta={"og:title": "OG title", "og:description": "About", "og:image": "/img.png"},
        )
        doc = Document.from_html(html, "https://example.com/page")
        metadata = extract_page_metadata(doc, "https://example.com/page")

        assert metadata == {
            "@type": "WebPage",
            "name": "OG title",
            "description": "About",
            "image": "https://example.com/img.png",
            "url": "https://example.com/page",
        }

    def test_bare_page(self):
        doc = Document.from_html("<html></html>", "https://example.com/empty")
        assert extract_page_metadata(doc, "https://example.com/empty") == {
            "@type": "WebPage",
            "url": "https://example.com/empty",
        }
