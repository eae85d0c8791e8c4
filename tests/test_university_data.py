"""
Tests for the static university knowledge base and program enrichment
"""
import pytest

from study_planner.schemas.submission import Program
from study_planner.services.university_data import enrich_program, get_university_data, has_value


def make_program(**overrides):
    fields = {
        "name": "Master of Science in Informatics",
        "field": "Computer Science & IT",
        "university": "Technical University of Munich",
        "country": "Germany",
        "reason": "Good fit",
    }
    fields.update(overrides)
    return Program(**fields)


class TestGetUniversityData:
    def test_exact_match(self):
        info = get_university_data("Technical University of Munich", "Germany")
        assert info["website_url"] == "https://www.tum.de/en/"

    def test_case_insensitive_match(self):
        info = get_university_data("technical university of munich", "Germany")
        assert info["contact_email"] == "studium@tum.de"

    def test_substring_match(self):
        info = get_university_data("Sorbonne University Paris", "France")
        assert info["contact_email"] == "scolarite@sorbonne-universite.fr"

    def test_two_shared_words_match(self):
        # "economics" and "business" are shared, neither name contains the other
        info = get_university_data("Economics and Business School Wien", "Austria")
        assert info["website_url"] == "https://www.wu.ac.at/en/"

    def test_short_alias(self):
        info = get_university_data("LMU", "Germany")
        assert info["website_url"] == "https://www.lmu.de/en/"

    def test_unknown_country(self):
        assert get_university_data("University of Bologna", "Italy") is None

    def test_unknown_university(self):
        assert get_university_data("Freie Hochschule", "Germany") is None

    def test_empty_name(self):
        assert get_university_data("", "Germany") is None


class TestHasValue:
    @pytest.mark.parametrize("value", [None, "", "   ", "Not specified", "not specified", "NOT SPECIFIED"])
    def test_placeholders(self, value):
        assert has_value(value) is False

    def test_real_value(self):
        assert has_value("€0") is True


class TestEnrichProgram:
    def test_static_entry_wins(self):
        program = make_program(website_url="https://made-up.example.com", tuition_fee="€5,000 per year")
        enriched = enrich_program(program)
        assert enriched.website_url == "https://www.tum.de/en/"
        assert enriched.tuition_fee == "€0 (free tuition)"
        assert enriched.application_deadline == "May 31, 2026"

    def test_input_program_not_mutated(self):
        program = make_program(website_url="https://made-up.example.com")
        enrich_program(program)
        assert program.website_url == "https://made-up.example.com"

    def test_unknown_university_returned_unchanged(self):
        program = make_program(university="Freie Hochschule", contact_email="Not specified")
        assert enrich_program(program) == program

    def test_idempotent(self):
        once = enrich_program(make_program(name=""))
        twice = enrich_program(once)
        assert once == twice

    def test_name_suggested_when_missing(self):
        enriched = enrich_program(make_program(name="", field="Computer Science"))
        assert enriched.name == "Master of Science in Computer Science"

    def test_name_suggested_for_business_field(self):
        program = make_program(
            name="Not specified",
            field="Business & Management",
            university="Vienna University of Economics and Business",
            country="Austria",
        )
        assert enrich_program(program).name == "Bachelor in Business and Economics (BBE)"

    def test_real_name_kept(self):
        enriched = enrich_program(make_program(field="Computer Science"))
        assert enriched.name == "Master of Science in Informatics"

    def test_other_fields_preserved(self):
        program = make_program(category="Reach", description="Top CS school")
        enriched = enrich_program(program)
        assert enriched.category == "Reach"
        assert enriched.description == "Top CS school"
