"""Tests for the provider response parser."""

from __future__ import annotations

import json

import pytest

from resume_screener.errors import MalformedJson, NoJsonFound, SchemaViolation
from resume_screener.models.analysis import ParsedCandidate, ResumeAnalysis, ScoringPolicy
from resume_screener.models.candidate import CandidateRecord
from resume_screener.models.job import JobRequirements
from resume_screener.pipeline.response_parser import parse_analysis


class TestParseAnalysis:
    def test_clean_json(self, analysis_json):
        result = parse_analysis(analysis_json)
        assert isinstance(result, ResumeAnalysis)
        assert result.parsed_data.name == "Jane Doe"
        assert result.match_score == 88
        assert result.recommendation == "Shortlist"

    def test_fenced_equals_unwrapped(self, analysis_json):
        fenced = f"```json\n{analysis_json}\n```"
        assert parse_analysis(fenced) == parse_analysis(analysis_json)

    def test_surrounding_prose(self, analysis_json):
        text = f"Sure! Here is the analysis:\n{analysis_json}\nLet me know if you need more."
        assert parse_analysis(text) == parse_analysis(analysis_json)

    @pytest.mark.parametrize("match_score", [0, 49.5, 50, 69, 70, 100])
    def test_round_trip_is_identity(self, sample_analysis, match_score):
        policy = ScoringPolicy()
        analysis = sample_analysis.model_copy(
            update={"match_score": match_score, "recommendation": policy.recommend(match_score)}
        )
        assert parse_analysis(analysis.model_dump_json()) == analysis

    def test_no_brace_raises_no_json_found(self):
        with pytest.raises(NoJsonFound):
            parse_analysis("I could not analyze this resume, sorry.")

    def test_malformed_json(self):
        with pytest.raises(MalformedJson):
            parse_analysis('{"parsed_data": {"name": "Jane",}, "match_score": 80,,}')

    def test_missing_parsed_data(self, analysis_payload):
        del analysis_payload["parsed_data"]
        with pytest.raises(SchemaViolation, match="parsed_data"):
            parse_analysis(json.dumps(analysis_payload))

    def test_parsed_data_not_object(self, analysis_payload):
        analysis_payload["parsed_data"] = "Jane Doe"
        with pytest.raises(SchemaViolation):
            parse_analysis(json.dumps(analysis_payload))

    @pytest.mark.parametrize("bad_score", [None, "85", True, [85]])
    def test_bad_match_score(self, analysis_payload, bad_score):
        analysis_payload["match_score"] = bad_score
        with pytest.raises(SchemaViolation, match="match_score"):
            parse_analysis(json.dumps(analysis_payload))

    def test_missing_match_score(self, analysis_payload):
        del analysis_payload["match_score"]
        with pytest.raises(SchemaViolation):
            parse_analysis(json.dumps(analysis_payload))

    def test_skills_not_a_list(self, analysis_payload):
        analysis_payload["parsed_data"]["skills"] = "React, CSS"
        with pytest.raises(SchemaViolation, match="skills"):
            parse_analysis(json.dumps(analysis_payload))

    def test_experience_years_not_number(self, analysis_payload):
        analysis_payload["parsed_data"]["experience_years"] = "six"
        with pytest.raises(SchemaViolation, match="experience_years"):
            parse_analysis(json.dumps(analysis_payload))

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_experience_years(self, analysis_payload, value):
        analysis_payload["parsed_data"]["experience_years"] = value
        raw = json.dumps(analysis_payload)  # emits Infinity / NaN literals
        with pytest.raises(SchemaViolation, match="experience_years"):
            parse_analysis(raw)

    def test_non_finite_match_score(self):
        with pytest.raises(SchemaViolation, match="match_score"):
            parse_analysis('{"parsed_data": {}, "match_score": NaN}')

    def test_non_finite_sub_score_defaults_to_match_score(self, analysis_payload, store):
        analysis_payload["skill_match_score"] = float("inf")
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.skill_match_score == analysis_payload["match_score"]

        job = store.create_job(JobRequirements(title="Frontend"))
        record = CandidateRecord(job_id=job.id, resume_filename="cv.pdf", analysis=result)
        store.add_candidate(record)
        assert store.list_candidates(job.id)[0].analysis == result

    def test_zero_match_score_is_valid(self, analysis_payload):
        analysis_payload["match_score"] = 0
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.match_score == 0
        assert result.recommendation == "Reject"


class TestRecommendationCorrection:
    def test_invalid_recommendation_coerced(self, analysis_payload):
        analysis_payload["match_score"] = 60
        analysis_payload["recommendation"] = "Maybe"
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.recommendation == "Review"

    def test_inconsistent_recommendation_corrected(self, analysis_payload):
        analysis_payload["match_score"] = 30
        analysis_payload["recommendation"] = "Shortlist"
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.recommendation == "Reject"

    def test_invalid_recommendation_with_high_score(self, analysis_payload):
        analysis_payload["match_score"] = 91
        analysis_payload["recommendation"] = None
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.recommendation == "Shortlist"

    @pytest.mark.parametrize(
        "score,expected",
        [(100, "Shortlist"), (70, "Shortlist"), (69.9, "Review"), (50, "Review"), (49, "Reject")],
    )
    def test_default_bands(self, analysis_payload, score, expected):
        analysis_payload["match_score"] = score
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.recommendation == expected
        assert result.is_consistent()

    def test_custom_policy(self, analysis_payload):
        analysis_payload["match_score"] = 75
        policy = ScoringPolicy(shortlist_threshold=80, review_threshold=50)
        result = parse_analysis(json.dumps(analysis_payload), policy)
        assert result.recommendation == "Review"


class TestLenientFields:
    def test_scores_clamped(self, analysis_payload):
        analysis_payload["match_score"] = 140
        analysis_payload["skill_match_score"] = -5
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.match_score == 100
        assert result.skill_match_score == 0

    def test_missing_sub_scores_default_to_match_score(self, analysis_payload):
        del analysis_payload["skill_match_score"]
        analysis_payload["experience_match_score"] = "high"
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.skill_match_score == 88
        assert result.experience_match_score == 88

    def test_minimal_payload(self):
        result = parse_analysis('{"parsed_data": {"name": "Sam"}, "match_score": 55}')
        assert result.parsed_data == ParsedCandidate(name="Sam")
        assert result.explanation == ""
        assert result.strengths == []
        assert result.recommendation == "Review"

    def test_null_fields_become_empty(self, analysis_payload):
        analysis_payload["parsed_data"]["phone"] = None
        analysis_payload["parsed_data"]["projects"] = None
        analysis_payload["gaps"] = None
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.parsed_data.phone == ""
        assert result.parsed_data.projects == []
        assert result.gaps == []

    def test_duplicate_skills_removed(self, analysis_payload):
        analysis_payload["parsed_data"]["skills"] = ["React", "CSS", "React", "css"]
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.parsed_data.skills == ["React", "CSS", "css"]

    def test_negative_experience_clamped(self, analysis_payload):
        analysis_payload["parsed_data"]["experience_years"] = -2
        result = parse_analysis(json.dumps(analysis_payload))
        assert result.parsed_data.experience_years == 0
