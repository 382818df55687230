"""
Unit tests for catalyst/common/dedupe.py
"""

from catalyst.common.dedupe import dedupe_key, dedupe_postings, normalize_for_dedupe
from catalyst.services.job_sources import JobPosting


def posting(title, company, source="ncs", id="1"):
    return JobPosting(
        id=id, title=title, company=company, location="Pune",
        description="", url="https://example.com", source=source,
    )


class TestNormalizeForDedupe:

    def test_strips_punctuation_and_case(self):
        assert normalize_for_dedupe("Acme & Co.") == "acmeco"
        assert normalize_for_dedupe("Sr. Software-Engineer (Python)") == "srsoftwareengineerpython"

    def test_none_and_empty(self):
        assert normalize_for_dedupe(None) == ""
        assert normalize_for_dedupe("") == ""

    def test_keeps_language_symbols(self):
        assert normalize_for_dedupe("C++ Developer") == "c++developer"
        assert normalize_for_dedupe("C# Developer") == "c#developer"

    def test_keeps_non_latin_scripts(self):
        assert normalize_for_dedupe("इंजीनियर") == "इंजीनियर"
        assert normalize_for_dedupe("Straße GmbH") == "strassegmbh"


class TestDedupeKey:

    def test_key_format(self):
        assert dedupe_key("Senior Engineer", "Acme, Inc.") == "seniorengineer|acmeinc"

    def test_equivalent_postings_share_key(self):
        assert dedupe_key("Data Analyst", "TCS Ltd") == dedupe_key("data  analyst!", "tcs ltd.")

    def test_title_and_company_do_not_bleed(self):
        assert dedupe_key("ab", "c") != dedupe_key("a", "bc")


class TestDedupePostings:

    def test_first_occurrence_wins(self):
        first = posting("Backend Developer", "Infosys", source="ncs", id="n1")
        duplicate = posting("backend developer", "INFOSYS", source="jooble", id="j1")
        other = posting("Frontend Developer", "Infosys", source="adzuna", id="a1")

        result = dedupe_postings([first, duplicate, other])

        assert result == [first, other]
        assert result[0].source == "ncs"

    def test_symbol_titles_are_distinct(self):
        cpp = posting("C++ Developer", "Acme", id="1")
        csharp = posting("C# Developer", "Acme", id="2")

        assert dedupe_postings([cpp, csharp]) == [cpp, csharp]

    def test_devanagari_postings_are_distinct(self):
        engineer = posting("इंजीनियर", "टाटा", id="1")
        doctor = posting("डॉक्टर", "एम्स", id="2")

        assert dedupe_postings([engineer, doctor]) == [engineer, doctor]

    def test_devanagari_duplicates_merge(self):
        first = posting("इंजीनियर", "टाटा", source="ncs", id="n1")
        again = posting(" इंजीनियर ", "टाटा.", source="jooble", id="j1")

        assert dedupe_postings([first, again]) == [first]

    def test_preserves_order(self):
        items = [posting(f"Role {i}", "Co", id=str(i)) for i in range(5)]
        assert dedupe_postings(items) == items

    def test_empty(self):
        assert dedupe_postings([]) == []
