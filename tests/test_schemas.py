"""
Tests for submission schemas: normalization of model output and legacy shapes
"""
import pytest
from pydantic import ValidationError

from study_planner.schemas.submission import (
    PLAN_DEADLINES,
    PLAN_MID,
    PLAN_NOW,
    AdmissionPlan,
    AIResponse,
    Program,
    Submission,
    UserInput,
)


class TestUserInput:
    def test_email_lower_cased(self, user_input):
        assert user_input.email == "student@example.com"

    def test_invalid_email_rejected(self, valid_form):
        valid_form["email"] = "not-an-email"
        with pytest.raises(ValidationError):
            UserInput.model_validate(valid_form)

    def test_unknown_country_rejected(self, valid_form):
        valid_form["countries"] = ["Spain"]
        with pytest.raises(ValidationError):
            UserInput.model_validate(valid_form)

    def test_blank_exam_score_is_none(self, valid_form):
        valid_form["examScore"] = "  "
        assert UserInput.model_validate(valid_form).exam_score is None

    def test_frozen(self, user_input):
        with pytest.raises(ValidationError):
            user_input.grades = "A"

    def test_prompt_helpers(self, user_input):
        assert user_input.language_preference_text() == "English-taught programs only"
        assert user_input.exam_text() == "IELTS (Score: 7.5)"


class TestProgram:
    def test_canonicalizes_model_output(self, tum_program_payload):
        program = Program.model_validate(tum_program_payload)
        assert program.language == "English"
        assert program.category == "Reach"
        assert program.admission_status == "Can apply now"
        assert program.can_apply is True

    def test_non_english_language_is_local(self, tum_program_payload):
        tum_program_payload["language"] = "German"
        assert Program.model_validate(tum_program_payload).language == "Local"

    def test_unknown_status_dropped(self, tum_program_payload):
        tum_program_payload["admissionStatus"] = "Maybe"
        program = Program.model_validate(tum_program_payload)
        assert program.admission_status is None
        assert program.can_apply is False

    def test_numeric_fee_coerced_to_text(self, tum_program_payload):
        tum_program_payload["tuitionFee"] = 0
        assert Program.model_validate(tum_program_payload).tuition_fee == "0"

    def test_missing_name_is_empty(self, tum_program_payload):
        del tum_program_payload["name"]
        assert Program.model_validate(tum_program_payload).name == ""

    def test_university_required(self, tum_program_payload):
        del tum_program_payload["university"]
        with pytest.raises(ValidationError):
            Program.model_validate(tum_program_payload)


class TestAdmissionPlan:
    def test_missing_and_non_list_buckets_become_empty(self):
        plan = AdmissionPlan.model_validate({PLAN_NOW: "Book IELTS", PLAN_MID: None})
        assert plan.now_to_three_months == []
        assert plan.three_to_six_months == []
        assert plan.before_deadlines == []

    def test_dumps_bucket_keys(self, plan_payload):
        document = AdmissionPlan.model_validate(plan_payload).to_document()
        assert document[PLAN_NOW] == ["Book IELTS test"]
        assert document[PLAN_MID] == ["Collect recommendation letters"]
        assert document[PLAN_DEADLINES] == ["Submit application by May 31, 2026"]
        assert document["requirements"]["recommendationLetters"] == 2

    def test_requirements_coercion(self):
        plan = AdmissionPlan.model_validate({
            "requirements": {
                "languageExams": "IELTS 7.0",
                "videoEssay": "yes",
                "recommendationLetters": "2 letters",
                "otherRequirements": None,
            }
        })
        requirements = plan.requirements
        assert requirements.language_exams == ["IELTS 7.0"]
        assert requirements.video_essay is True
        assert requirements.portfolio is False
        assert requirements.recommendation_letters == 2
        assert requirements.other_requirements == []


class TestAIResponse:
    def test_legacy_universities_become_programs(self):
        response = AIResponse.model_validate({
            "universities": [
                {"name": "University of Vienna", "country": "Austria", "reason": "Affordable"},
                {"name": "University of Oxford", "country": "UK", "category": "Reach", "field": "Law"},
            ]
        })
        first, second = response.programs
        assert first.name == "University of Vienna"
        assert first.university == "University of Vienna"
        assert first.language == "English"
        assert first.category == "Realistic"
        assert first.field == ""
        assert second.category == "Reach"
        assert second.field == "Law"

    def test_nameless_legacy_university_named_program(self):
        response = AIResponse.model_validate({"universities": [{"country": "France"}]})
        assert response.programs[0].name == "Program"

    def test_programs_take_precedence_over_universities(self, tum_program_payload):
        response = AIResponse.model_validate({
            "programs": [tum_program_payload],
            "universities": [{"name": "University of Vienna", "country": "Austria"}],
        })
        assert [p.university for p in response.programs] == ["Technical University of Munich"]

    def test_program_plans_keyed_by_index(self, plan_payload):
        response = AIResponse.model_validate({"programs": [], "programPlans": {"3": plan_payload}})
        assert response.program_plans["3"].before_deadlines == ["Submit application by May 31, 2026"]


class TestSubmission:
    def test_document_round_trip(self, user_input, tum_program_payload):
        submission = Submission(
            id="abc",
            email=user_input.email,
            input=user_input,
            response=AIResponse.model_validate({"programs": [tum_program_payload]}),
        )
        document = submission.to_document()
        assert set(document) == {"id", "email", "input", "response", "createdAt"}
        assert document["input"]["admissionType"] == "Master"
        assert Submission.model_validate(document).to_document() == document

    @pytest.mark.parametrize("email", ["student@", "no-at-sign.example.com", "two@@example.com"])
    def test_invalid_email_rejected(self, user_input, email):
        with pytest.raises(ValidationError):
            Submission(id="abc", email=email, input=user_input)

    def test_email_whitespace_stripped(self, user_input):
        assert Submission(id="abc", email="  student@example.com ", input=user_input).email == "student@example.com"

    def test_empty_id_rejected(self, user_input):
        with pytest.raises(ValidationError):
            Submission(id="", email=user_input.email, input=user_input)

    def test_naive_timestamp_assumed_utc(self, user_input):
        submission = Submission.model_validate({
            "id": "abc",
            "email": user_input.email,
            "input": user_input.to_document(),
            "createdAt": "2026-01-15T10:00:00",
        })
        assert submission.created_at.tzinfo is not None
