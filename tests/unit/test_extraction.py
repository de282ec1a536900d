"""
Unit tests for the extraction layer.

Covers:
- candidate discovery order (selectors before keyword scan)
- field extraction (name, url, score, categorical arrays)
- game statistics plausibility ranges
- targeted single-record extraction
"""

import pytest

from casinoscrape.extraction.fields import (
    ScorePolicy,
    extract_score,
    extract_stats,
    is_generic_label,
    stats_to_lists,
    vocabulary_matches,
)
from casinoscrape.extraction.parsers import bs4_soup, split_items
from casinoscrape.extraction.pipeline import ExtractionPipeline, GameStatsExtractor
from casinoscrape.extraction.strategies import discover_candidates
from casinoscrape.extraction.vocabularies import PAYMENT_METHODS

PAGE_URL = "https://casinoscores.com/"


class TestScore:
    def test_rescale_divides_large_values(self):
        assert extract_score("Score: 85", ScorePolicy.RESCALE) == 8.5

    def test_rescale_drops_values_still_too_large(self):
        assert extract_score("Score: 250", ScorePolicy.RESCALE) is None

    def test_strict_drops_large_values(self):
        assert extract_score("Score: 85", ScorePolicy.STRICT) is None
        assert extract_score("Rated 9.1 stars", ScorePolicy.STRICT) == 9.1

    def test_slash_forms(self):
        assert extract_score("Our verdict 8.7/10") == 8.7
        assert extract_score("4.5 / 5 from users") == 4.5

    def test_no_score(self):
        assert extract_score("no numbers here") is None


class TestVocabulary:
    def test_whole_word_matching(self):
        """A vocabulary term inside a longer word is not a match."""
        assert vocabulary_matches("We accept Visa and PayPal", PAYMENT_METHODS) == ["Visa", "PayPal"]
        assert vocabulary_matches("Based in Visakhapatnam", PAYMENT_METHODS) == []

    def test_case_insensitive(self):
        assert vocabulary_matches("pay with SKRILL", PAYMENT_METHODS) == ["Skrill"]

    def test_split_items(self):
        assert split_items("Visa, Mastercard; Skrill | 123 • x\nNeteller") == [
            "Visa",
            "Mastercard",
            "Skrill",
            "Neteller",
        ]


class TestGenericLabels:
    @pytest.mark.parametrize("text", ["Read more", "VISIT", "Play now", "https://x.io", "12345", "  "])
    def test_rejected(self, text):
        assert is_generic_label(text)

    def test_real_name_accepted(self):
        assert not is_generic_label("Alpha Casino")


class TestStats:
    def test_rtp_range(self):
        """RTP 96.5% is kept, RTP 150% is dropped."""
        assert stats_to_lists(extract_stats("RTP: 96.5% on the main game"))["rtp"] == [96.5]
        assert "rtp" not in stats_to_lists(extract_stats("RTP: 150% on the main game"))

    def test_multiplier_ranges(self):
        stats = stats_to_lists(extract_stats("bonus multiplier: 20000x and a 500x max, also 1x"))
        assert 500 in stats["multipliers"]
        assert 20000 not in stats["multipliers"]
        assert 1 not in stats["multipliers"]

    def test_short_or_script_text_skipped(self):
        assert stats_to_lists(extract_stats("RTP 96%")) == {}
        assert stats_to_lists(extract_stats('{"rtp": "RTP: 96.5%", "x": 1}')) == {}
        assert stats_to_lists(extract_stats("window.config = RTP: 96.5%")) == {}

    def test_bonus_frequency_every_n_spins(self):
        stats = stats_to_lists(extract_stats("A bonus game triggers every 20 spins on average"))
        assert stats["bonusFrequency"] == [5.0]

    def test_volatility_numeric_and_label(self):
        stats = stats_to_lists(extract_stats("Volatility: 7 here; variance: low elsewhere"))
        assert stats["volatility"] == [7, "low"]


class TestDiscovery:
    def test_first_matching_strategy_wins(self, load_html):
        soup = bs4_soup(load_html("casino_listing.html"))
        strategy, elements = discover_candidates(soup, keywords=["casino"])
        assert strategy == "cards-and-lists"
        assert len(elements) == 4

    def test_keyword_scan_fallback(self, load_html):
        soup = bs4_soup(load_html("keyword_scan.html"))
        strategy, elements = discover_candidates(soup, keywords=["casino"])
        assert strategy == "keyword-scan"
        assert len(elements) == 1

    def test_nothing_found(self, load_html):
        soup = bs4_soup(load_html("empty.html"))
        assert discover_candidates(soup, keywords=["casino"]) == (None, [])


class TestExtractionPipeline:
    @pytest.fixture
    def pipeline(self, games):
        return ExtractionPipeline(games["casino-scores"])

    def test_listing_records(self, pipeline, load_html):
        records = pipeline.extract(load_html("casino_listing.html"), PAGE_URL)

        assert [r.name for r in records] == ["Alpha Casino", "Beta Casino"]
        alpha, beta = records

        assert alpha.url == "https://casinoscores.com/go/alpha"
        assert alpha.score == 9.2
        assert alpha.rating.value == "Excellent"
        assert alpha.bonuses == ["Welcome bonus 100% up to €500"]
        assert alpha.payment_methods == ["Visa", "Mastercard", "Skrill"]
        assert alpha.licenses == ["Malta Gaming Authority"]
        assert alpha.languages == ["English", "German"]
        assert alpha.currencies == ["EUR"]
        assert {"Live Chat", "Mobile Compatible"} <= set(alpha.features)
        assert alpha.live_chat and alpha.mobile_compatible
        assert alpha.stats["provenance"]["strategy"] == "cards-and-lists"
        assert alpha.fallback_mode is None

        assert beta.url == "https://beta.example.com/casino"
        assert beta.score == 8.5
        assert beta.bonuses == ["Get 50 free spins on signup"]
        assert beta.currencies == ["USD"]
        assert beta.payment_methods == ["PayPal"]

    def test_duplicate_names_keep_first(self, pipeline, load_html):
        """'Alpha Casino' and '  ALPHA   CASINO ' collapse to the first record."""
        records = pipeline.extract(load_html("casino_listing.html"), PAGE_URL)
        alphas = [r for r in records if r.key == "alpha casino"]
        assert len(alphas) == 1
        assert alphas[0].score == 9.2

    def test_keyword_scan_records(self, pipeline, load_html):
        records = pipeline.extract(load_html("keyword_scan.html"), PAGE_URL)
        assert [r.name for r in records] == ["Gamma Palace"]
        assert records[0].url == PAGE_URL
        assert pipeline.last_strategy == "keyword-scan"

    def test_empty_page(self, pipeline, load_html):
        assert pipeline.extract(load_html("empty.html"), PAGE_URL) == []


class TestGameStatsExtractor:
    def test_single_aggregated_record(self, games, load_html):
        game = games["crazy-time"]
        records = GameStatsExtractor(game).extract(load_html("crazy_time.html"), game.target_url)

        assert len(records) == 1
        rec = records[0]
        assert rec.name == "Crazy Time"
        assert rec.type.value == "game-show"
        assert rec.url == "https://casinoscores.com/crazy-time"
        assert rec.score == 9.1
        assert rec.description.startswith("Crazy Time by Evolution offers")

        stats = rec.stats
        assert stats["rtp"] == [96.08]
        assert 50 in stats["multipliers"]
        assert stats["maxWin"] == [25000]
        assert stats["wheelSegments"] == [54]
        assert stats["volatility"] == ["high"]
        assert stats["hitRate"] == [45.5]
        assert 1500 in stats["rounds"]
        assert stats["recentResults"] == ["2, 5, 1, 2x"]
        assert stats["provenance"]["containers"] == 2
        assert "cash hunt" in rec.features

    def test_page_without_stats_still_yields_record(self, games, load_html):
        game = games["monopoly-live"]
        records = GameStatsExtractor(game).extract(load_html("empty.html"), game.target_url)

        assert len(records) == 1
        assert records[0].name == "Monopoly Live"
        assert records[0].description == game.description
        assert set(records[0].stats) == {"provenance"}
